"""
Tests for the command-line front end and settings.
"""

import io
import json
import sys
from pathlib import Path

import pytest

from monkey import Settings
from monkey.__main__ import main


EXAMPLES = Path(__file__).resolve().parent.parent / "examples"

CLOSURE_PROGRAM = """
let newAdder = fn(x) {
    fn(y) { x + y };
};
let addTwo = newAdder(2);
addTwo(2);
"""


@pytest.fixture
def source_file(tmp_path):
    def write(text, name="prog.monkey"):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return write


class TestSettings:
    """Test configuration defaults and environment overrides."""

    def test_defaults(self):
        settings = Settings()
        assert settings.max_depth == 500
        assert settings.max_errors == 20
        assert settings.color is True
        assert settings.log_level == "WARNING"

    def test_from_empty_env(self):
        assert Settings.from_env({}) == Settings()

    def test_from_env(self):
        settings = Settings.from_env({
            "MONKEY_MAX_DEPTH": "40",
            "MONKEY_MAX_ERRORS": "3",
            "MONKEY_LOG_LEVEL": "debug",
            "NO_COLOR": "",
        })
        assert settings.max_depth == 40
        assert settings.max_errors == 3
        assert settings.log_level == "DEBUG"
        assert settings.color is False

    @pytest.mark.parametrize("raw", ["abc", "0", "-5"])
    def test_malformed_values_ignored(self, raw):
        assert Settings.from_env({"MONKEY_MAX_DEPTH": raw}).max_depth == 500

    def test_with_overrides(self):
        settings = Settings().with_overrides(max_depth=10, color=None)
        assert settings.max_depth == 10
        assert settings.color is True


class TestRunCommand:
    """Test `run`."""

    def test_prints_result(self, source_file, capsys):
        assert main(["--no-color", "run", source_file(CLOSURE_PROGRAM)]) == 0
        assert capsys.readouterr().out == "4\n"

    def test_binding_prints_nothing(self, source_file, capsys):
        assert main(["run", source_file("let x = 1;")]) == 0
        assert capsys.readouterr().out == ""

    def test_runtime_error(self, source_file, capsys):
        path = source_file("5 + true;")
        assert main(["--no-color", "run", path]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "error[E402]" in captured.err
        assert path in captured.err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["run", str(tmp_path / "nope.monkey")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("2 * (5 + 10)"))
        assert main(["run", "-"]) == 0
        assert capsys.readouterr().out == "30\n"

    def test_max_depth_option(self, source_file, capsys):
        path = source_file("let f = fn(n) { f(n + 1) }; f(0)")
        assert main(["--no-color", "--max-depth", "30", "run", path]) == 1
        assert "E408" in capsys.readouterr().err

    def test_invalid_max_depth(self, source_file):
        with pytest.raises(SystemExit):
            main(["--max-depth", "0", "run", source_file("1")])


class TestExamples:
    """The bundled example programs run cleanly."""

    @pytest.mark.parametrize("name,expected", [
        ("closures.monkey", "44\n"),
        ("fibonacci.monkey", "233\n"),
    ])
    def test_example(self, name, expected, capsys):
        assert main(["--no-color", "run", str(EXAMPLES / name)]) == 0
        assert capsys.readouterr().out == expected


class TestCheckCommand:
    """Test `check`."""

    def test_clean_file(self, source_file, capsys):
        assert main(["check", source_file(CLOSURE_PROGRAM)]) == 0
        assert "OK:" in capsys.readouterr().out

    def test_reports_all_errors(self, source_file, capsys):
        path = source_file("let = 1;\nlet y = ;\ny")
        assert main(["--no-color", "check", path]) == 1
        out = capsys.readouterr().out
        assert "E101" in out
        assert "E103" in out
        assert "2 error(s), 0 warning(s)" in out

    def test_warnings_only(self, source_file, capsys):
        assert main(["--no-color", "check", source_file("return 1; 2")]) == 0
        assert "W001" in capsys.readouterr().out

    def test_json(self, source_file, capsys):
        assert main(["check", "--json", source_file("let = 1; let y = ;")]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["error_count"] == 2
        assert [d["code"] for d in data["diagnostics"]] == ["E101", "E103"]

    def test_deep_nesting_with_raised_limit(self, source_file, capsys):
        path = source_file("(" * 6000 + "1" + ")" * 6000)
        assert main(["--no-color", "--max-depth", "100000", "check", path]) == 1
        assert "E105" in capsys.readouterr().out

    def test_check_does_not_evaluate(self, source_file, capsys):
        assert main(["check", source_file("5 + true")]) == 0


class TestDumpCommands:
    """Test `tokens` and `ast`."""

    def test_tokens(self, source_file, capsys):
        assert main(["tokens", source_file("let x = 5;")]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].endswith("LET")
        assert lines[1].endswith("IDENTIFIER('x')")
        assert lines[-1].endswith("EOF")

    def test_tokens_lexer_error(self, source_file, capsys):
        assert main(["--no-color", "tokens", source_file("let x = @;")]) == 1
        assert "E001" in capsys.readouterr().err

    def test_ast(self, source_file, capsys):
        assert main(["ast", source_file("let x = 1 + 2;")]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Program")
        assert "InfixOp" in out

    def test_ast_with_errors(self, source_file, capsys):
        assert main(["--no-color", "ast", source_file("let = 1;")]) == 1
        assert "E101" in capsys.readouterr().err


class TestReplCommand:
    """Test the default interactive mode."""

    def test_repl_reads_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("let x = 20;\nx + 22\n"))
        assert main(["--no-color"]) == 0
        assert "42" in capsys.readouterr().out
