"""Fetch a Terraform module and read the input variables it declares."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import tempfile
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Callable

from .vars_to_crd import TerraformVariable

__all__ = [
    "ModuleError",
    "fetch_module",
    "get_variables_from_module",
    "extract_variables_from_file",
    "parse_variables",
]


class ModuleError(Exception):
    """Raised when a module cannot be fetched or its variables cannot be read."""


_FORCED = re.compile(r"^([a-z0-9]+)::(.+)$")
_GIT_HOSTS = ("github.com/", "gitlab.com/", "bitbucket.org/")
_ARCHIVE_SUFFIXES = (".tar.gz", ".tgz", ".tar", ".zip")


def fetch_module(dst: str, src: str) -> None:
    """Download the module at ``src`` (git, HTTP archive or local directory) into ``dst``.

    A ``//subdir`` suffix selects a directory inside the fetched source.
    """
    forced = None
    if match := _FORCED.match(src):
        forced, src = match.groups()
    start = src.find("://") + 3 if "://" in src else 0
    subdir = ""
    if (index := src.find("//", start)) >= 0:
        src, subdir = src[:index], src[index + 2 :]
        if "?" in subdir:
            subdir, query = subdir.split("?", 1)
            src = f"{src}?{query}"

    with tempfile.TemporaryDirectory() as staging:
        _download(forced, src, staging)
        root = os.path.join(staging, subdir)
        if not os.path.isdir(root):
            raise ModuleError(f"subdirectory {subdir!r} not found in module {src}")
        shutil.copytree(root, dst, dirs_exist_ok=True, ignore=shutil.ignore_patterns(".git"))


def _download(forced: str | None, src: str, dest: str) -> None:
    parsed = urllib.parse.urlsplit(src)
    bare = src.split("?", 1)[0]
    looks_git = (
        bare.endswith(".git")
        or src.startswith("git@")
        or parsed.scheme == "ssh"
        or src.split("://", 1)[-1].startswith(_GIT_HOSTS)
    )
    if forced == "git" or (forced is None and looks_git):
        url, _, query = src.partition("?")
        if "://" not in url and not url.startswith("git@"):
            url = "https://" + url
        _run_git(["git", "clone", url, dest])
        if ref := urllib.parse.parse_qs(query).get("ref", [""])[0]:
            _run_git(["git", "-C", dest, "checkout", ref])
    elif forced in (None, "http", "https") and parsed.scheme in ("http", "https"):
        suffix = next((s for s in _ARCHIVE_SUFFIXES if parsed.path.endswith(s)), None)
        if suffix is None:
            raise ModuleError(f"unsupported module source: {src}")
        with tempfile.TemporaryDirectory() as tmp:
            archive = os.path.join(tmp, "module" + suffix)
            try:
                with urllib.request.urlopen(src) as response, open(archive, "wb") as out:
                    shutil.copyfileobj(response, out)
            except OSError as exc:
                raise ModuleError(f"failed to download {src}: {exc}") from exc
            shutil.unpack_archive(archive, dest)
    elif forced in (None, "file") and os.path.isdir(path := parsed.path if parsed.scheme == "file" else src):
        shutil.copytree(path, dest, dirs_exist_ok=True)
    else:
        raise ModuleError(f"unsupported module source: {src}")


def _run_git(command: list[str]) -> None:
    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise ModuleError("git executable not found") from exc
    except subprocess.CalledProcessError as exc:
        raise ModuleError(f"{' '.join(command)} failed: {exc.stderr.strip()}") from exc


def get_variables_from_module(
    module_source: str,
    fetch: Callable[[str, str], None] | None = None,
    make_temp_dir: Callable[[], str] | None = None,
) -> list[TerraformVariable]:
    """Fetch ``module_source`` and return the variables in its ``variables.tf``."""
    fetch = fetch or fetch_module
    make_temp_dir = make_temp_dir or (lambda: tempfile.mkdtemp(prefix="terraform-module"))
    try:
        temp_dir = make_temp_dir()
    except OSError as exc:
        raise ModuleError(f"failed to create temp directory: {exc}") from exc

    try:
        try:
            fetch(temp_dir, module_source)
        except Exception as exc:
            raise ModuleError(f"failed to download module: {exc}") from exc
        try:
            return extract_variables_from_file(os.path.join(temp_dir, "variables.tf"))
        except ModuleError as exc:
            raise ModuleError(f"failed to parse variables: {exc}") from exc
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


def extract_variables_from_file(file_path: str) -> list[TerraformVariable]:
    """Read an HCL file and return the variables it declares."""
    try:
        with open(file_path, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise ModuleError(f"failed to read file: {exc}") from exc
    return parse_variables(text)


def parse_variables(text: str) -> list[TerraformVariable]:
    """Parse HCL source holding only ``variable`` blocks into variables."""
    attributes, blocks = _Parser(text).parse_body(closing=False)
    if attributes:
        name = next(iter(attributes))
        raise ModuleError(f"failed to parse body content: unsupported argument {name!r}")
    variables = []
    for block_type, labels, body in blocks:
        if block_type != "variable":
            raise ModuleError(f"failed to parse body content: unsupported block type {block_type!r}")
        if len(labels) != 1:
            raise ModuleError("failed to parse body content: a variable needs exactly one name label")
        variable = TerraformVariable(name=labels[0])
        if "type" in body[0]:
            variable.type = _type_text(body[0]["type"], text)
        if "description" in body[0]:
            variable.description = _description_text(body[0]["description"], text)
        variables.append(variable)
    return variables


# A small HCL reader: enough to find blocks, attributes and expression extents.

@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    start: int
    end: int
    value: str | None = None

    def is_(self, punct: str) -> bool:
        return self.kind == "punct" and self.text == punct


_LEXEME_PATTERN = re.compile(
    r"""(?P<ws>[ \t\r]+)
    |(?P<comment>\#[^\n]*|//[^\n]*|/\*.*?\*/)
    |(?P<newline>\n)
    |(?P<heredoc><<(?P<flush>-?)(?P<marker>[A-Za-z_][\w-]*)\r?\n(?P<body>.*?)^[ \t]*(?P=marker)[ \t]*$)
    |(?P<string>"(?:[^"\\\n]|\\.)*")
    |(?P<ident>[A-Za-z_][\w-]*)
    |(?P<number>\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
    |(?P<punct>\.\.\.|==|!=|<=|>=|&&|\|\||=>|[{}\[\](),.:?=+\-*/%!<>])""",
    re.X | re.S | re.M,
)
_INTERPOLATION = re.compile(r"(?<!\$)\$\{|(?<!%)%\{")
_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[nrt\"\\])")
_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}
_OPENERS = {"(": ")", "[": "]", "{": "}"}


def _syntax_error(message: str, text: str, offset: int) -> ModuleError:
    line = text.count("\n", 0, offset) + 1
    column = offset - text.rfind("\n", 0, offset)
    return ModuleError(f"failed to parse HCL file: {line},{column}: {message}")


def _literal(content: str) -> str | None:
    if _INTERPOLATION.search(content):
        return None
    content = content.replace("$${", "${").replace("%%{", "%{")
    return _ESCAPE.sub(lambda m: _ESCAPES.get(m[1]) or chr(int(m[1][1:], 16)), content)


def _tokenize(text: str) -> list[_Token]:
    tokens = []
    pos = 0
    while pos < len(text):
        match = _LEXEME_PATTERN.match(text, pos)
        if not match:
            raise _syntax_error(f"invalid character {text[pos]!r}", text, pos)
        kind, start, pos = match.lastgroup, match.start(), match.end()
        if kind == "heredoc":
            body = match["body"]
            if match["flush"]:
                lines = body.splitlines(keepends=True)
                indent = min((len(l) - len(l.lstrip(" \t")) for l in lines if l.strip()), default=0)
                body = "".join(l[indent:] if l.strip() else l.lstrip(" \t") for l in lines)
            value = None if _INTERPOLATION.search(body) else body.replace("$${", "${").replace("%%{", "%{")
            tokens.append(_Token("string", match[0], start, pos, value))
        elif kind == "string":
            tokens.append(_Token(kind, match[0], start, pos, _literal(match[0][1:-1])))
        elif kind not in ("ws", "comment", "flush", "marker", "body"):
            tokens.append(_Token(kind, match[0], start, pos))
    tokens.append(_Token("eof", "", len(text), len(text)))
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def _error(self, token: _Token, message: str) -> ModuleError:
        return _syntax_error(message, self.text, token.start)

    def _next(self) -> _Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def parse_body(self, closing: bool):
        attributes: dict[str, list[_Token]] = {}
        blocks = []
        while True:
            token = self._next()
            if token.kind == "newline":
                continue
            if token.kind == "eof" or token.is_("}"):
                if closing != token.is_("}"):
                    raise self._error(token, "unclosed block" if closing else "unexpected '}'")
                self.pos -= 1
                return attributes, blocks
            if token.kind != "ident":
                raise self._error(token, "argument or block definition required")
            if self.tokens[self.pos].is_("="):
                self.pos += 1
                if token.text in attributes:
                    raise self._error(token, f"attribute {token.text!r} redefined")
                attributes[token.text] = self._expression()
            else:
                blocks.append((token.text, *self._block()))
            end = self.tokens[self.pos]
            if end.kind == "newline":
                self.pos += 1
            elif end.kind != "eof" and not end.is_("}"):
                raise self._error(end, "missing newline after argument or block definition")

    def _block(self):
        labels = []
        while (token := self._next()).kind == "ident" or (token.kind == "string" and token.value is not None):
            labels.append(token.text if token.kind == "ident" else token.value)
        if not token.is_("{"):
            raise self._error(token, "expected '{'")
        body = self.parse_body(closing=True)
        self.pos += 1
        return labels, body

    def _expression(self) -> list[_Token]:
        tokens: list[_Token] = []
        stack: list[str] = []
        while True:
            token = self.tokens[self.pos]
            if token.kind == "eof" or (not stack and (token.kind == "newline" or token.is_("}"))):
                break
            self.pos += 1
            if token.kind == "newline":
                continue
            if token.kind == "punct" and token.text in _OPENERS:
                stack.append(_OPENERS[token.text])
            elif token.kind == "punct" and token.text in ")]}":
                if not stack or stack.pop() != token.text:
                    raise self._error(token, f"mismatched {token.text!r}")
            tokens.append(token)
        if stack:
            raise self._error(token, "unclosed bracket")
        if not tokens:
            raise self._error(token, "expression expected")
        return tokens


def _type_text(tokens: list[_Token], text: str) -> str:
    first = tokens[0]
    if first.kind == "ident" and len(tokens) > 2 and tokens[1].is_("(") and tokens[-1].is_(")"):
        depth, args, current = 0, [], []
        for index, token in enumerate(tokens[1:], 1):
            if token.kind == "punct" and token.text in "([{":
                depth += 1
            elif token.kind == "punct" and token.text in ")]}":
                depth -= 1
                if depth == 0 and index != len(tokens) - 1:
                    break
            if index in (1, len(tokens) - 1):
                continue
            if depth == 1 and token.is_(","):
                args.append(current)
                current = []
            elif not token.is_("..."):
                current.append(token)
        else:
            args = [arg for arg in args + [current] if arg]
            return f"{first.text}({', '.join(_type_text(arg, text) for arg in args)})"
    if first.kind == "ident" and first.text not in ("true", "false", "null") and all(
        t.kind in ("ident", "number") or t.is_(".") for t in tokens
    ):
        return first.text
    return text[first.start : tokens[-1].end]


def _description_text(tokens: list[_Token], text: str) -> str:
    if len(tokens) == 1 and tokens[0].kind == "string" and tokens[0].value is not None:
        return tokens[0].value
    raw = text[tokens[0].start : tokens[-1].end]
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        return raw[1:-1].strip()
    return raw.strip()