"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def run_cli(tmp_path):
    """Run the CLI against an isolated data directory."""
    def _run(command: str, stdin: str = "", timeout: int = 30) -> tuple[int, str, str]:
        env = {**os.environ, "DATA_DIR": str(tmp_path / "data"), "COLUMNS": "120"}
        result = subprocess.run(
            f"{sys.executable} -m src.cli.mathdrill {command}",
            shell=True,
            cwd=PROJECT_ROOT,
            capture_output=True,
            text=True,
            input=stdin,
            env=env,
            timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr
    return _run


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, run_cli):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "Commands" in stdout
        assert "practice" in stdout

    def test_practice_help(self, run_cli):
        code, stdout, stderr = run_cli("practice --help")

        assert code == 0, f"Practice help failed: {stderr}"
        assert "--max-attempts" in stdout


class TestCLITopics:
    """Test topics command."""

    def test_lists_topics(self, run_cli):
        code, stdout, stderr = run_cli("topics")

        assert code == 0, f"Topics failed: {stderr}"
        for name in ("multiplication", "fractions", "distributive"):
            assert name in stdout


class TestCLIPractice:
    """Test practice sessions fed from stdin."""

    def test_reveal_through_session(self, run_cli):
        """Revealing every problem should still reach the results table."""
        code, stdout, stderr = run_cli("practice multiplication -n 2 --seed 1", stdin="r\n\nr\n\n")

        assert code == 0, f"Practice failed: {stderr}"
        assert "Session Results" in stdout
        assert "Revealed" in stdout

    def test_quit_early(self, run_cli):
        code, stdout, stderr = run_cli("practice fractions -n 3 --seed 2", stdin="q\n")

        assert code == 0, f"Practice failed: {stderr}"
        assert "ended early" in stdout

    def test_unknown_topic(self, run_cli):
        code, stdout, stderr = run_cli("practice geometry")

        assert code == 1
        assert "Unknown topic" in stdout

    def test_progress_recorded(self, run_cli):
        run_cli("practice multiplication -n 1 --seed 1", stdin="r\n\n")

        code, stdout, stderr = run_cli("progress")

        assert code == 0, f"Progress failed: {stderr}"
        assert "multiplication" in stdout


class TestCLISettings:
    """Test settings persistence through the CLI."""

    def test_saved_settings_shown(self, run_cli):
        run_cli("practice fractions -n 4 -a 3 --save --seed 1", stdin="q\n")

        code, stdout, stderr = run_cli("settings fractions")

        assert code == 0, f"Settings failed: {stderr}"
        assert "problem_count" in stdout
        assert "4" in stdout


class TestCLIProgress:
    """Test progress export and reset."""

    def test_export_and_reset(self, run_cli, tmp_path):
        run_cli("practice multiplication -n 1 --seed 1", stdin="r\n\n")
        target = tmp_path / "progress.csv"

        code, stdout, stderr = run_cli(f'progress --export "{target}"')
        assert code == 0, f"Export failed: {stderr}"
        assert target.read_text(encoding="utf-8").startswith('"Operation"')

        code, stdout, stderr = run_cli("progress --reset")
        assert code == 0
        code, stdout, stderr = run_cli("progress")
        assert "No progress recorded yet" in stdout

    def test_empty_progress(self, run_cli):
        code, stdout, stderr = run_cli("progress")

        assert code == 0
        assert "No progress recorded yet" in stdout
