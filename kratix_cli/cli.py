"""The ``kratix`` command line."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

import yaml

from .update_api import GVKChange, update_api
from .update_dependencies import update_dependencies
from .update_destination_selector import update_selector

__all__ = ["build_parser", "main"]

VERSION = "0.1.0"

_ROOT_EXAMPLE = """\
examples:
  # To initialize a new promise
  kratix init promise promise-name --group myorg.com --kind Database
"""

_UPDATE_API_HELP = """\
Command to update the Promise API.

It can be used to update the API GVK, or to add/remove properties to the API.

The --group, --kind, --version, and --plural flags are used to update the API
GVK. The --property flag is used to add or remove properties from the API. The
format is PROPERTY-NAME:TYPE. Valid types are string, number, integer, object,
and boolean.

For object types, the property name can be nested using the '.' character.

To remove a property, append a '-' to the property name."""

_UPDATE_API_EXAMPLE = """\
examples:
  # add a new property of type string to the API
  kratix update api --property region:string

  # add an integer 'port' property nested into a 'service' object
  kratix update api --property service.port:integer

  # removes the property from the API
  kratix update api --property region-

  # updates the API group and the Kind
  kratix update api --group myorg.com --kind Database

  # updates the version and the plural form
  kratix update api --version v1beta3 --plural mydbs
"""

_DEPENDENCIES_EXAMPLE = """\
examples:
  # update promise dependencies with all files in 'local-dir'
  kratix update dependencies path/to/dir/

  # update promise dependencies with single file
  kratix update dependencies path/to/file.yaml
"""

_SELECTOR_EXAMPLE = """\
examples:
  # adds and updates a destination selector
  kratix update destination-selector env=dev
  # removes an existing destination selector
  kratix update destination-selector zone-
"""


def _run_update_api(args: argparse.Namespace) -> None:
    change = GVKChange(
        group=args.group, kind=args.kind, version=args.api_version, plural=args.plural
    )
    update_api(args.dir, change, args.property)


def _run_update_dependencies(args: argparse.Namespace) -> None:
    update_dependencies(args.dir, args.path)


def _run_update_selector(args: argparse.Namespace) -> None:
    update_selector(args.dir, args.selector)


def build_parser() -> argparse.ArgumentParser:
    """Return the parser for the ``kratix`` command and its subcommands."""
    formatter = argparse.RawDescriptionHelpFormatter
    parser = argparse.ArgumentParser(
        prog="kratix",
        description="A CLI tool for Kratix",
        epilog=_ROOT_EXAMPLE,
        formatter_class=formatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s version {VERSION}")
    parser.add_argument("-t", "--toggle", action="store_true", help="Help message for toggle")
    parser.set_defaults(handler=lambda args: parser.print_help())
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    update = commands.add_parser(
        "update",
        help="Command to update kratix resources",
        description="Command to update kratix resources",
    )
    update.set_defaults(handler=lambda args: update.print_help())
    update_commands = update.add_subparsers(dest="subcommand", metavar="COMMAND")

    api = update_commands.add_parser(
        "api",
        help="Command to update promise API",
        description=_UPDATE_API_HELP,
        epilog=_UPDATE_API_EXAMPLE,
        formatter_class=formatter,
    )
    api.add_argument("-d", "--dir", default=".", help="Directory to read Promise from")
    api.add_argument("-g", "--group", default="", help="The API group for the Promise")
    api.add_argument("-k", "--kind", default="", help="The kind to be provided by the Promise")
    api.add_argument(
        "-v", "--version", dest="api_version", default="",
        help="The group version for the Promise",
    )
    api.add_argument("--plural", default="", help="The plural form of the kind")
    api.add_argument(
        "-p", "--property", action="append", default=[],
        help="Property of the Promise API to update",
    )
    api.set_defaults(handler=_run_update_api)

    dependencies = update_commands.add_parser(
        "dependencies",
        help="Commands to update promise dependencies",
        description=(
            "Commands to update promise dependencies, by default dependencies are "
            "stored in the Promise spec.dependencies field"
        ),
        epilog=_DEPENDENCIES_EXAMPLE,
        formatter_class=formatter,
    )
    dependencies.add_argument("path", metavar="PATH")
    dependencies.add_argument("-d", "--dir", default=".", help="Directory to read Promise from")
    dependencies.set_defaults(handler=_run_update_dependencies)

    selector = update_commands.add_parser(
        "destination-selector",
        help="Command to update destination selectors",
        description="Command to update destination selectors",
        epilog=_SELECTOR_EXAMPLE,
        formatter_class=formatter,
    )
    selector.add_argument("selector", metavar="KEY=VALUE")
    selector.add_argument("-d", "--dir", default=".", help="Directory to read Promise from")
    selector.set_defaults(handler=_run_update_selector)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the exit status."""
    args = build_parser().parse_args(argv)
    try:
        args.handler(args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())