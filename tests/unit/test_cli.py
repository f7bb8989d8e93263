"""Tests for the blockgen command line."""

from __future__ import annotations

import io
import json

import pytest

from blockgen import cli
from blockgen.api import SyntaxIssue, SyntaxReport

PROGRAM = {
    "blocks": [
        {
            "type": "controls_whileUntil",
            "id": "loop",
            "fields": {"MODE": "WHILE"},
            "values": {"BOOL": {"type": "variables_get", "fields": {"VAR": "go"}}},
            "statements": {
                "DO": {
                    "type": "variables_set",
                    "id": "set",
                    "fields": {"VAR": "x"},
                    "values": {"VALUE": {"type": "math_number", "fields": {"NUM": 1}}},
                }
            },
        }
    ]
}


@pytest.fixture
def program_file(tmp_path):
    path = tmp_path / "program.json"
    path.write_text(json.dumps(PROGRAM), encoding="utf-8")
    return str(path)


class TestArguments:
    def test_defaults(self):
        args = cli.build_arg_parser().parse_args(["program.json"])
        assert args.language == "python"
        config = cli.config_from_args(args)
        assert config.indent is None
        assert config.emit_comments

    def test_config_mapping(self):
        args = cli.build_arg_parser().parse_args(
            ["p.json", "--statement-prefix", "a(%1)", "--statement-suffix", "b(%1)",
             "--loop-trap", "c()", "--indent", "4", "--max-depth", "7", "--no-comments"]
        )
        config = cli.config_from_args(args)
        assert config.statement_prefix == "a(%1)"
        assert config.statement_suffix == "b(%1)"
        assert config.infinite_loop_trap == "c()"
        assert config.indent == "    "
        assert config.max_depth == 7
        assert not config.emit_comments

    def test_unknown_language_is_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_arg_parser().parse_args(["p.json", "-l", "cobol"])


class TestMain:
    def test_generates_python(self, program_file, capsys):
        assert cli.main([program_file]) == cli.EXIT_OK
        out = capsys.readouterr().out
        assert out == "go = None\nx = None\n\n\nwhile go:\n  x = 1\n"

    def test_generates_lua(self, program_file, capsys):
        assert cli.main([program_file, "--language", "lua"]) == cli.EXIT_OK
        assert capsys.readouterr().out == "while go do\n  x = 1\nend\n"

    def test_indent_option(self, program_file, capsys):
        assert cli.main([program_file, "-l", "php", "--indent", "4"]) == cli.EXIT_OK
        assert capsys.readouterr().out == "while ($go) {\n    $x = 1;\n}\n"

    def test_loop_trap_option(self, program_file, capsys):
        assert cli.main([program_file, "-l", "lua", "--loop-trap", "tick(%1)"]) == cli.EXIT_OK
        assert capsys.readouterr().out == "while go do\n  tick('loop')\n  x = 1\nend\n"

    def test_reads_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(PROGRAM)))
        assert cli.main(["-", "-l", "lua"]) == cli.EXIT_OK
        assert capsys.readouterr().out.startswith("while go do\n")

    def test_missing_file(self, tmp_path, capsys):
        assert cli.main([str(tmp_path / "absent.json")]) == cli.EXIT_GENERATION_FAILED
        assert capsys.readouterr().out == ""

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        assert cli.main([str(path)]) == cli.EXIT_GENERATION_FAILED

    def test_unknown_block_type(self, tmp_path, caplog):
        path = tmp_path / "unknown.json"
        path.write_text(json.dumps({"type": "lists_create_with"}), encoding="utf-8")
        assert cli.main([str(path)]) == cli.EXIT_GENERATION_FAILED
        assert "lists_create_with" in caplog.text

    def test_too_deep(self, tmp_path):
        expr = {"type": "variables_get", "fields": {"VAR": "x"}}
        for _ in range(10):
            expr = {"type": "math_single", "fields": {"OP": "NEG"}, "values": {"NUM": expr}}
        path = tmp_path / "deep.json"
        path.write_text(json.dumps(expr), encoding="utf-8")
        assert cli.main([str(path), "--max-depth", "5"]) == cli.EXIT_GENERATION_FAILED

    def test_check_passes(self, program_file, monkeypatch, capsys):
        monkeypatch.setattr(cli, "check_syntax", lambda code, language: SyntaxReport(language=language))
        assert cli.main([program_file, "--check"]) == cli.EXIT_OK
        assert capsys.readouterr().err == ""

    def test_check_reports_issues(self, program_file, monkeypatch, capsys):
        report = SyntaxReport(
            language="python",
            issues=[SyntaxIssue(line=4, column=2, kind="error", text="x")],
        )
        monkeypatch.setattr(cli, "check_syntax", lambda code, language: report)
        assert cli.main([program_file, "--check"]) == cli.EXIT_SYNTAX_ERRORS
        captured = capsys.readouterr()
        assert captured.out.startswith("go = None")
        assert f"{program_file}:4:2: error 'x'" in captured.err
