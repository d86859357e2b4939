import os

import pytest

from kratix_cli.terraform_module import (
    ModuleError,
    extract_variables_from_file,
    fetch_module,
    get_variables_from_module,
    parse_variables,
)

VARIABLES_TF = """
    variable "example_var" {
      type        = string
      description = "An example variable"
    }

    variable "complex_var" {
      type        = list(map(string))
      description = "A complex variable"
    }

    variable "number_var" {
      type        = number
    }

    variable "bool_var" {
      type        = bool
    }
"""


@pytest.fixture
def temp_dir(tmp_path):
    directory = tmp_path / "module"
    directory.mkdir()
    return str(directory)


def test_variables_from_downloaded_module(temp_dir):
    calls = []

    def fake_fetch(dst, src):
        calls.append((dst, src))
        with open(os.path.join(dst, "variables.tf"), "w") as handle:
            handle.write(VARIABLES_TF)

    variables = get_variables_from_module(
        "mock-source", fetch=fake_fetch, make_temp_dir=lambda: temp_dir
    )

    assert calls == [(temp_dir, "mock-source")]
    assert len(variables) == 4
    assert (variables[0].name, variables[0].type, variables[0].description) == (
        "example_var",
        "string",
        "An example variable",
    )
    assert (variables[1].name, variables[1].type, variables[1].description) == (
        "complex_var",
        "list(map(string))",
        "A complex variable",
    )
    assert (variables[2].name, variables[2].type, variables[2].description) == (
        "number_var",
        "number",
        "",
    )
    assert (variables[3].name, variables[3].type, variables[3].description) == (
        "bool_var",
        "bool",
        "",
    )


def test_temp_dir_is_removed_afterwards(temp_dir):
    def fake_fetch(dst, src):
        with open(os.path.join(dst, "variables.tf"), "w") as handle:
            handle.write(VARIABLES_TF)

    variables = get_variables_from_module(
        "src", fetch=fake_fetch, make_temp_dir=lambda: temp_dir
    )
    assert [v.name for v in variables] == [
        "example_var",
        "complex_var",
        "number_var",
        "bool_var",
    ]
    assert not os.path.exists(temp_dir)


def test_download_failure(temp_dir):
    def failing_fetch(dst, src):
        raise RuntimeError("mock download failure")

    with pytest.raises(ModuleError, match="failed to download module"):
        get_variables_from_module(
            "mock-source", fetch=failing_fetch, make_temp_dir=lambda: temp_dir
        )


def test_parse_failure(temp_dir):
    def bad_fetch(dst, src):
        with open(os.path.join(dst, "variables.tf"), "w") as handle:
            handle.write("invalid hcl")

    with pytest.raises(ModuleError, match="failed to parse variables"):
        get_variables_from_module(
            "mock-source", fetch=bad_fetch, make_temp_dir=lambda: temp_dir
        )


def test_missing_variables_file(temp_dir):
    with pytest.raises(ModuleError, match="failed to parse variables: failed to read file"):
        get_variables_from_module(
            "mock-source", fetch=lambda dst, src: None, make_temp_dir=lambda: temp_dir
        )


def test_temp_dir_creation_failure():
    def failing_mkdtemp():
        raise OSError("no space")

    with pytest.raises(ModuleError, match="failed to create temp directory"):
        get_variables_from_module("src", make_temp_dir=failing_mkdtemp)


def test_extract_from_file(tmp_path):
    path = tmp_path / "variables.tf"
    path.write_text(VARIABLES_TF)
    names = [v.name for v in extract_variables_from_file(str(path))]
    assert names == ["example_var", "complex_var", "number_var", "bool_var"]


def test_object_type_keeps_source_text():
    text = 'variable "cfg" {\n  type = list(object({ name = string }))\n}\n'
    assert parse_variables(text)[0].type == "list(object({ name = string }))"


def test_function_arguments_are_normalised():
    text = 'variable "m" {\n  type = map( string )\n}\n'
    assert parse_variables(text)[0].type == "map(string)"


def test_quoted_type_is_kept_raw():
    text = 'variable "legacy" {\n  type = "string"\n}\n'
    assert parse_variables(text)[0].type == '"string"'


def test_description_with_escapes():
    text = 'variable "e" {\n  description = "say \\"hi\\"\\tnow"\n}\n'
    assert parse_variables(text)[0].description == 'say "hi"\tnow'


def test_description_with_interpolation_falls_back_to_source():
    text = 'variable "r" {\n  description = "Region ${var.x}"\n}\n'
    assert parse_variables(text)[0].description == "Region ${var.x}"


def test_heredoc_description():
    text = (
        'variable "h" {\n'
        "  description = <<-EOT\n"
        "    Line one\n"
        "    Line two\n"
        "  EOT\n"
        "}\n"
    )
    assert parse_variables(text)[0].description == "Line one\nLine two\n"


def test_other_attributes_and_nested_blocks_are_ignored():
    text = """
# leading comment
variable "port" {
  type      = number  // trailing comment
  default   = 8080
  sensitive = false
  validation {
    condition     = var.port > 0
    error_message = "Port must be positive."
  }
}
/* block
   comment */
variable "single" { type = string }
"""
    variables = parse_variables(text)
    assert [(v.name, v.type) for v in variables] == [("port", "number"), ("single", "string")]
    assert variables[0].default is None


def test_multiline_default_is_skipped():
    text = 'variable "tags" {\n  default = {\n    a = "b"\n  }\n  type = map(string)\n}\n'
    assert parse_variables(text)[0].type == "map(string)"


def test_unsupported_top_level_block():
    with pytest.raises(ModuleError, match="failed to parse body content"):
        parse_variables('output "x" {\n  value = 1\n}\n')


def test_top_level_attribute_is_rejected():
    with pytest.raises(ModuleError, match="failed to parse body content"):
        parse_variables("name = 1\n")


def test_variable_without_name():
    with pytest.raises(ModuleError, match="missing name for variable"):
        parse_variables("variable {\n}\n")


def test_unclosed_block():
    with pytest.raises(ModuleError, match="failed to parse HCL file"):
        parse_variables('variable "x" {\n  type = string\n')


def test_duplicate_attribute():
    with pytest.raises(ModuleError, match="redefined"):
        parse_variables('variable "x" {\n  type = string\n  type = number\n}\n')


def test_fetch_local_directory(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    (source / "variables.tf").write_text(VARIABLES_TF)
    dst = tmp_path / "dst"
    dst.mkdir()
    fetch_module(str(dst), str(source))
    assert (dst / "variables.tf").read_text() == VARIABLES_TF


def test_fetch_local_subdirectory(tmp_path):
    source = tmp_path / "src"
    (source / "sub").mkdir(parents=True)
    (source / "sub" / "variables.tf").write_text("sub")
    (source / "root.tf").write_text("root")
    dst = tmp_path / "dst"
    dst.mkdir()
    fetch_module(str(dst), f"{source}//sub")
    assert sorted(os.listdir(dst)) == ["variables.tf"]


def test_fetch_unsupported_source(tmp_path):
    with pytest.raises(ModuleError, match="unsupported module source"):
        fetch_module(str(tmp_path), "ftp://example.com/module")


def test_end_to_end_with_local_module(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    (source / "variables.tf").write_text(VARIABLES_TF)
    variables = get_variables_from_module(str(source))
    assert [v.type for v in variables] == ["string", "list(map(string))", "number", "bool"]