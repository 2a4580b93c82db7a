"""Tests for the tfdoc command line."""

import json

from tfdoc_core.cli import main

MAIN_TF = '''resource "aws_instance" "web" {
  ami = "abc"
}
'''


def _rows(out):
    return [json.loads(line) for line in out.splitlines() if line]


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

def test_lists_resources(tmp_path, capsys):
    path = tmp_path / "main.tf"
    path.write_text(MAIN_TF)
    assert main([str(path)]) == 0
    (row,) = _rows(capsys.readouterr().out)
    assert row["address"] == "aws_instance.web"
    assert row["arguments"] == {"ami": "abc"}
    assert (row["start_line"], row["end_line"]) == (1, 3)
    assert row["path"] == str(path)


def test_kind_option(tmp_path, capsys):
    path = tmp_path / "variables.tf"
    path.write_text('variable "region" {\n  default = "us-east-1"\n}\n')
    assert main(["-k", "variable", str(path)]) == 0
    (row,) = _rows(capsys.readouterr().out)
    assert row["default_value"] == '"us-east-1"'


def test_state_flag(tmp_path, capsys):
    path = tmp_path / "prod.json"
    path.write_text(json.dumps({
        "version": 4,
        "resources": [{"type": "aws_instance", "name": "web",
                       "instances": [{"index_key": 0, "attributes": {"id": "i-0"}}]}],
    }, indent=2))
    assert main(["--state", str(path)]) == 0
    (row,) = _rows(capsys.readouterr().out)
    assert row["address"] == "aws_instance.web[0]"


def test_config_file(tmp_path, capsys):
    tf = tmp_path / "main.tf"
    tf.write_text(MAIN_TF)
    config = tmp_path / "tfdoc.json"
    config.write_text(json.dumps({"configuration_file_paths": [str(tf)]}))
    assert main(["-c", str(config)]) == 0
    assert len(_rows(capsys.readouterr().out)) == 1


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

def test_no_inputs(capsys):
    assert main([]) == 2
    assert "no files given" in capsys.readouterr().err


def test_parse_error_status(tmp_path, capsys):
    bad = tmp_path / "bad.tf"
    bad.write_text('resource "aws_instance" "web" {\n')
    good = tmp_path / "main.tf"
    good.write_text(MAIN_TF)
    assert main([str(bad), str(good)]) == 1
    captured = capsys.readouterr()
    assert "bad.tf" in captured.err
    assert len(_rows(captured.out)) == 1


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.tf")]) == 1
    assert "nope.tf" in capsys.readouterr().err
