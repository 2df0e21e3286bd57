"""End-to-end tests running real shell commands.

Tests cover:
- ShellProcessRunner results, options and failures
- StreamConsoleSink output
- Full plans through the default runner and sink
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.executor import ExecPlan, ShellProcessRunner, StreamConsoleSink
from src.planning import ProcessExecutionError, RoundStatus, StepStatus


# --- ShellProcessRunner ---


class TestShellProcessRunner:
    """Tests for ShellProcessRunner."""

    @pytest.mark.asyncio
    async def test_successful_command(self):
        result = await ShellProcessRunner().run("echo hello")

        assert not result.failed
        assert result.stdout == "hello\n"
        assert result.stderr == ""
        assert result.returncode == 0

    @pytest.mark.asyncio
    async def test_failing_command(self):
        result = await ShellProcessRunner().run("echo oops >&2; exit 3")

        assert result.failed
        assert isinstance(result.error, ProcessExecutionError)
        assert result.error.returncode == 3
        assert result.error.stderr == "oops\n"
        assert result.stderr == "oops\n"

    @pytest.mark.asyncio
    async def test_missing_command(self):
        result = await ShellProcessRunner().run("./command_that_does_not_exist")

        assert result.failed
        assert result.returncode != 0
        assert result.stderr

    @pytest.mark.asyncio
    async def test_cwd_option(self, tmp_path: Path):
        result = await ShellProcessRunner().run("pwd", {"cwd": str(tmp_path)})

        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    @pytest.mark.asyncio
    async def test_env_option(self):
        env = {**os.environ, "EXEC_PLAN_GREETING": "howdy"}
        result = await ShellProcessRunner().run("echo $EXEC_PLAN_GREETING", {"env": env})

        assert result.stdout == "howdy\n"

    @pytest.mark.asyncio
    async def test_bad_cwd_is_a_failure(self, tmp_path: Path):
        result = await ShellProcessRunner().run("ls", {"cwd": str(tmp_path / "missing")})

        assert result.failed
        assert result.returncode is None

    @pytest.mark.asyncio
    async def test_timeout_option(self):
        result = await ShellProcessRunner().run("sleep 5", {"timeout": 0.2})

        assert result.failed
        assert result.error.timed_out

    @pytest.mark.asyncio
    async def test_timeout_kills_whole_command(self):
        """Test children of the shell are killed too, so the pipes close."""
        started = time.monotonic()
        result = await ShellProcessRunner().run("sleep 5; echo done", {"timeout": 0.2})

        assert result.error.timed_out
        assert result.stdout == ""
        assert time.monotonic() - started < 3

    @pytest.mark.asyncio
    async def test_unknown_options_ignored(self):
        result = await ShellProcessRunner().run("echo hi", {"maxBuffer": 1024})

        assert result.stdout == "hi\n"


# --- StreamConsoleSink ---


class TestStreamConsoleSink:
    """Tests for StreamConsoleSink."""

    def test_writes_lines(self, capsys):
        sink = StreamConsoleSink()
        sink.write_out("out")
        sink.write_err("err\n")

        captured = capsys.readouterr()
        assert captured.out == "out\n"
        assert captured.err == "err\n"


# --- ExecPlan ---


class TestExecPlanEndToEnd:
    """Tests for whole plans run through the shell."""

    @pytest.mark.asyncio
    async def test_three_echoes(self, capsys):
        plan = ExecPlan()
        calls = []
        plan.on("execerror", lambda error, stderr: calls.append("execerror"))
        plan.on("complete", lambda stdout: calls.append(("complete", stdout)))
        plan.on("finish", lambda: calls.append("finish"))
        plan.add("echo a")
        plan.add("echo b")
        plan.add("echo c")

        plan.execute()
        [state] = await plan.wait()

        assert calls == [("complete", "c\n"), "finish"]
        assert state.status == RoundStatus.COMPLETED
        assert capsys.readouterr().out == "a\nb\nc\n"

    @pytest.mark.asyncio
    async def test_stop_policy_with_override(self):
        plan = ExecPlan({"continueOnError": False, "autoPrintOut": False, "autoPrintErr": False})
        complete = MagicMock()
        plan.on("complete", complete)
        plan.add("false", lambda error, stderr: True)
        plan.add("echo ok")

        plan.execute()
        [state] = await plan.wait()

        complete.assert_called_once_with("ok\n")
        assert [r.status for r in state.step_results] == [
            StepStatus.RECOVERED,
            StepStatus.COMPLETED,
        ]

    @pytest.mark.asyncio
    async def test_stderr_printed_on_failure(self, capsys):
        plan = ExecPlan({"autoPrintOut": False})
        execerror = MagicMock()
        plan.on("execerror", execerror)
        plan.add("echo broken >&2; exit 1")

        plan.execute()
        await plan.wait()

        execerror.assert_called_once()
        assert "broken" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_pre_logic_sees_previous_output(self, tmp_path: Path):
        plan = ExecPlan({"autoPrintOut": False, "autoPrintErr": False})
        seen = []
        plan.add("echo first")
        plan.add(seen.append, "echo second", {"cwd": str(tmp_path)})

        plan.execute()
        await plan.wait()

        assert seen == ["first\n"]
