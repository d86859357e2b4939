import pytest
import yaml

from kratix_cli.cli import build_parser, main


def _write_promise(directory, spec):
    (directory / "promise.yaml").write_text(
        yaml.safe_dump({"kind": "Promise", "metadata": {"name": "db"}, "spec": spec})
    )


def _read_promise(directory):
    return yaml.safe_load((directory / "promise.yaml").read_text())


def test_parser_reads_update_api_flags():
    args = build_parser().parse_args(
        ["update", "api", "-d", "somewhere", "-g", "myorg.com", "-k", "Database",
         "-v", "v1beta3", "--plural", "mydbs", "-p", "region:string", "-p", "zone-"]
    )
    assert args.dir == "somewhere"
    assert args.group == "myorg.com"
    assert args.kind == "Database"
    assert args.api_version == "v1beta3"
    assert args.plural == "mydbs"
    assert args.property == ["region:string", "zone-"]


def test_parser_defaults_dir_to_current():
    args = build_parser().parse_args(["update", "destination-selector", "env=dev"])
    assert args.dir == "."
    assert args.selector == "env=dev"


def test_dependencies_requires_path():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["update", "dependencies"])


def test_update_without_subcommand_prints_help(capsys):
    assert main(["update"]) == 0
    assert "Command to update kratix resources" in capsys.readouterr().out


def test_root_prints_help(capsys):
    assert main([]) == 0
    assert "A CLI tool for Kratix" in capsys.readouterr().out


def test_destination_selector_command(tmp_path, capsys):
    _write_promise(tmp_path, {})
    assert main(["update", "destination-selector", "env=dev", "--dir", str(tmp_path)]) == 0
    promise = _read_promise(tmp_path)
    assert promise["spec"]["destinationSelectors"][0]["matchLabels"] == {"env": "dev"}
    assert "Promise destination selector updated" in capsys.readouterr().out


def test_invalid_selector_reports_error(tmp_path, capsys):
    _write_promise(tmp_path, {})
    assert main(["update", "destination-selector", "env", "--dir", str(tmp_path)]) == 1
    assert "Error: invalid destination key: env" in capsys.readouterr().err


def test_update_api_adds_property(tmp_path):
    crd = {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "spec": {"versions": [{"name": "v1alpha1", "schema": {"openAPIV3Schema": {
            "type": "object", "properties": {"spec": {"type": "object", "properties": {}}}}}}]},
    }
    _write_promise(tmp_path, {"api": crd})
    assert main(["update", "api", "--property", "region:string", "--dir", str(tmp_path)]) == 0
    api = _read_promise(tmp_path)["spec"]["api"]
    spec_props = api["spec"]["versions"][0]["schema"]["openAPIV3Schema"]["properties"]["spec"]
    assert spec_props["properties"]["region"] == {"type": "string"}


def test_update_api_missing_promise_fails(tmp_path, capsys):
    assert main(["update", "api", "-p", "region:string", "-d", str(tmp_path)]) == 1
    assert "Please run 'kratix init promise' first" in capsys.readouterr().err


def test_update_dependencies_command(tmp_path, capsys):
    _write_promise(tmp_path, {})
    deps = tmp_path / "deps.yaml"
    deps.write_text("apiVersion: v1\nkind: Namespace\nmetadata:\n  name: ns\n")
    assert main(["update", "dependencies", str(deps), "--dir", str(tmp_path)]) == 0
    stored = _read_promise(tmp_path)["spec"]["dependencies"]
    assert stored[0]["metadata"]["namespace"] == "default"
    assert "Updated promise.yaml" in capsys.readouterr().out


def test_update_dependencies_missing_path(tmp_path, capsys):
    assert main(["update", "dependencies", str(tmp_path / "nope"), "-d", str(tmp_path)]) == 1
    assert "failed to stat dependency" in capsys.readouterr().err