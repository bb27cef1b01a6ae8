"""End-to-end tests for the ralph-gate CLI.

Tests cover:
- run command (console, --hook, --json, --dry-run, --only)
- invalid and missing config handling
- results file and run history persistence
- history command
- Exit codes
"""

import json
import os
import sys
from io import StringIO
from pathlib import Path

import pytest

from ralphgate.cli import format_dry_run, main
from ralphgate.gates.result import GateSpec


class CLIRunner:
    """Simple CLI runner that captures stdout/stderr."""

    def invoke(self, args: list[str]) -> "CLIResult":
        """Run CLI with given args and capture output."""
        old_stdout = sys.stdout
        old_stderr = sys.stderr
        sys.stdout = captured_out = StringIO()
        sys.stderr = captured_err = StringIO()

        try:
            exit_code = main(args)
        except SystemExit as e:
            exit_code = e.code if e.code is not None else 0
        finally:
            sys.stdout = old_stdout
            sys.stderr = old_stderr

        return CLIResult(
            exit_code=exit_code,
            stdout=captured_out.getvalue(),
            stderr=captured_err.getvalue(),
        )


class CLIResult:
    """Result from CLI invocation."""

    def __init__(self, exit_code: int, stdout: str, stderr: str):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

    @property
    def output(self) -> str:
        return self.stdout + self.stderr


@pytest.fixture
def cli_runner(tmp_path: Path, monkeypatch) -> CLIRunner:
    """Create a CLI runner working in a temporary directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RALPH_GATE_LOG_LEVEL", raising=False)
    return CLIRunner()


@pytest.fixture
def passing_config(write_config, py_cmd):
    """Two passing gates, results written to results.json."""
    return write_config(
        {
            "outputPath": "results.json",
            "gates": [
                {"name": "lint", "command": py_cmd("print('lint ok')"), "order": 10},
                {"name": "test", "command": py_cmd("print('tests ok')"), "order": 20},
            ],
        }
    )


@pytest.fixture
def failing_config(write_config, py_cmd):
    """A blocking failure followed by a skipped gate and a failing warning gate."""
    return write_config(
        {
            "outputPath": "results.json",
            "gates": [
                {
                    "name": "typecheck",
                    "command": py_cmd(
                        "import sys; print('checking'); "
                        "sys.stderr.write('error TS2322\\n'); sys.exit(2)"
                    ),
                    "order": 10,
                },
                {"name": "test", "command": py_cmd("print('tests ok')"), "order": 20},
                {
                    "name": "audit",
                    "command": py_cmd("import sys; sys.exit(1)"),
                    "order": 30,
                    "blocking": False,
                },
            ],
        }
    )


def read_results(tmp_path: Path, name: str = "results.json") -> dict:
    return json.loads((tmp_path / name).read_text())


class TestRunNoConfig:
    """Behaviour when no config file is present."""

    def test_hook_mode_emits_empty_object(self, cli_runner):
        result = cli_runner.invoke(["--hook"])

        assert result.exit_code == 0
        assert result.stdout == "{}\n"

    def test_console_mode(self, cli_runner):
        result = cli_runner.invoke(["run"])

        assert result.exit_code == 0
        assert "No gate config found" in result.stdout

    def test_dry_run(self, cli_runner):
        result = cli_runner.invoke(["--dry-run"])

        assert result.exit_code == 0
        assert "No gates to run." in result.stdout


class TestRunConsole:
    """Tests for the run command in console mode."""

    def test_all_pass(self, cli_runner, passing_config, tmp_path):
        result = cli_runner.invoke(["run", "--no-color"])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0].startswith("✓ lint (")
        assert lines[1].startswith("✓ test (")
        assert lines[-1] == "All blocking gates passed."

        data = read_results(tmp_path)
        assert data["passed"] is True
        assert [r["name"] for r in data["results"]] == ["lint", "test"]
        assert data["results"][0]["stdout"].strip() == "lint ok"

    def test_blocking_failure(self, cli_runner, failing_config, tmp_path):
        result = cli_runner.invoke(["run", "--no-color"])

        assert result.exit_code == 1
        assert "✗ typecheck (exit 2," in result.stdout
        assert "⊘ test (skipped, 0ms)" in result.stdout
        assert "✗ audit (exit 1," in result.stdout
        assert "Warnings: audit" in result.stdout
        assert result.stdout.splitlines()[-1] == "Blocking gate failed."

        data = read_results(tmp_path)
        assert data["first_failure"]["name"] == "typecheck"
        assert data["first_failure"]["stderr"] == "error TS2322\n"
        assert data["warnings"] == ["audit"]

    def test_default_output_path(self, cli_runner, write_config, py_cmd, tmp_path):
        write_config({"gates": [{"name": "ok", "command": py_cmd("pass")}]})

        result = cli_runner.invoke(["run"])

        assert result.exit_code == 0
        assert (tmp_path / f"gate-results-{os.getpid()}.json").exists()

    def test_json_output(self, cli_runner, failing_config):
        result = cli_runner.invoke(["run", "--json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["passed"] is False
        assert data["results"][1]["skipped"] is True

    def test_verbose_streams_output(self, cli_runner, passing_config):
        result = cli_runner.invoke(["run", "--verbose", "--no-color"])

        assert result.exit_code == 0
        assert "lint ok" in result.stdout
        assert "tests ok" in result.stdout


class TestRunHook:
    """Tests for the run command in hook mode."""

    def test_pass_emits_empty_object(self, cli_runner, passing_config):
        result = cli_runner.invoke(["--hook"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {}

    def test_failure_blocks(self, cli_runner, failing_config, tmp_path):
        result = cli_runner.invoke(["--hook"])

        assert result.exit_code == 0
        assert len(result.stdout.splitlines()) == 1
        decision = json.loads(result.stdout)
        assert decision["decision"] == "block"
        assert decision["reason"] == "Gate 'typecheck' failed (exit 2):\nerror TS2322"
        assert decision["warnings"] == ["audit"]
        assert (tmp_path / "results.json").exists()

    def test_verbose_keeps_stdout_for_decision(self, cli_runner, failing_config):
        result = cli_runner.invoke(["--hook", "--verbose"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["decision"] == "block"
        assert "checking" in result.stderr
        assert "error TS2322" in result.stderr


class TestInvalidConfig:
    """A config that exists but is invalid."""

    def test_hook_mode_blocks(self, cli_runner, write_config, tmp_path):
        write_config("{broken")

        result = cli_runner.invoke(["--hook"])

        assert result.exit_code == 0
        decision = json.loads(result.stdout)
        assert decision["decision"] == "block"
        assert decision["reason"].startswith("Invalid config: malformed JSON in gate.config.json")

        data = read_results(tmp_path, f"gate-results-{os.getpid()}.json")
        assert data["passed"] is False
        assert data["results"] == []

    def test_console_mode_errors(self, cli_runner, write_config):
        write_config({"gates": [{"name": "lint"}]})

        result = cli_runner.invoke(["run"])

        assert result.exit_code == 1
        expected = "Error: Invalid config: Gate 'lint' is missing required field: command."
        assert expected in result.stderr

    def test_json_error_envelope(self, cli_runner, write_config):
        write_config({"gates": "npm test"})

        result = cli_runner.invoke(["run", "--json"])

        assert result.exit_code == 1
        envelope = json.loads(result.stderr)
        assert envelope["error"]["code"] == "CONFIG_INVALID"


class TestRunOptions:
    """Tests for --dry-run and --only."""

    def test_dry_run_lists_gates(self, cli_runner, failing_config, tmp_path):
        result = cli_runner.invoke(["--dry-run"])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0].startswith("SHELL: ")
        assert [line.split(" ")[1] for line in lines[1:]] == ["typecheck", "test", "audit"]
        assert not (tmp_path / "results.json").exists()

    def test_only_runs_one_gate(self, cli_runner, failing_config, tmp_path):
        result = cli_runner.invoke(["run", "--only", "test"])

        assert result.exit_code == 0
        assert [r["name"] for r in read_results(tmp_path)["results"]] == ["test"]

    def test_only_unknown_gate(self, cli_runner, failing_config):
        result = cli_runner.invoke(["run", "--only", "deploy"])

        assert result.exit_code == 1
        assert "Gate not found: deploy" in result.stderr
        assert "Available gates: typecheck, test, audit" in result.stderr

    def test_unwritable_output_path(self, cli_runner, write_config, py_cmd):
        write_config(
            {
                "outputPath": "missing-dir/results.json",
                "gates": [{"name": "ok", "command": py_cmd("pass")}],
            }
        )

        result = cli_runner.invoke(["--hook"])

        assert result.exit_code == 2
        assert result.stdout == ""
        assert "Unable to write results file" in result.stderr


class TestHistory:
    """Tests for --history-dir and the history command."""

    def test_record_and_list(self, cli_runner, failing_config, tmp_path):
        history_dir = str(tmp_path / "history")
        cli_runner.invoke(["run", "--history-dir", history_dir])
        cli_runner.invoke(["run", "--only", "test", "--history-dir", history_dir])

        result = cli_runner.invoke(["history", "--history-dir", history_dir, "--no-color"])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0].split() == [
            "TIMESTAMP",
            "STATUS",
            "GATES",
            "SKIPPED",
            "FIRST",
            "FAILURE",
            "WARNINGS",
            "DURATION",
        ]
        assert "passed" in lines[2]
        assert "failed" in lines[3]
        assert "typecheck" in lines[3]
        assert lines[-1] == "Total: 2 runs"

    def test_history_json_limit(self, cli_runner, passing_config, tmp_path):
        history_dir = str(tmp_path / "history")
        for _ in range(3):
            cli_runner.invoke(["run", "--history-dir", history_dir])

        result = cli_runner.invoke(
            ["history", "--history-dir", history_dir, "--json", "--limit", "2"]
        )

        assert result.exit_code == 0
        runs = json.loads(result.stdout)
        assert len(runs) == 2
        assert runs[0]["timestamp"] >= runs[1]["timestamp"]

    def test_invalid_config_recorded(self, cli_runner, write_config, tmp_path):
        """A run stopped by a bad config still lands in the history."""
        write_config("{broken")
        history_dir = str(tmp_path / "history")

        run = cli_runner.invoke(["--hook", "--history-dir", history_dir])
        result = cli_runner.invoke(["history", "--history-dir", history_dir, "--json"])

        assert run.exit_code == 0
        runs = json.loads(result.stdout)
        assert len(runs) == 1
        assert runs[0]["passed"] is False
        assert runs[0]["results"] == []

    def test_missing_history(self, cli_runner, tmp_path):
        result = cli_runner.invoke(["history", "--history-dir", str(tmp_path / "nope")])

        assert result.exit_code == 1
        assert "Run history does not exist" in result.stderr

    def test_invalid_limit(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            ["history", "--history-dir", str(tmp_path), "--limit", "0", "--json"]
        )

        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "INVALID_ARGUMENT"


class TestFormatDryRun:
    """Tests for format_dry_run."""

    def test_lists_in_order(self):
        gates = [GateSpec(name="lint", command="npm run lint", order=10)]
        expected = "SHELL: /bin/bash\n- lint (order 10): npm run lint"
        assert format_dry_run(gates, "/bin/bash") == expected
