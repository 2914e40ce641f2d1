"""Tests for scrollpad.cli -- exit codes and error reporting."""

from __future__ import annotations

import pytest

from scrollpad import app, cli, terminal
from scrollpad.app import RunResult
from scrollpad.errors import DrawError, InputDecodeError, TerminalModeError
from scrollpad.state import AppState

from .virtual_terminal import ScriptedKeySource, VirtualTerminal


def fake_run(result: RunResult | None = None, error: BaseException | None = None):
    async def _run(terminal, renderer, config):
        if error is not None:
            raise error
        return result

    return _run


class TestMain:
    def test_clean_shutdown_exits_zero(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(
            app, "run", fake_run(RunResult(state=AppState.seeded("Hello, World!")))
        )
        assert cli.main([]) == 0
        assert capsys.readouterr().out == ""

    def test_polling_error_is_printed(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(
            app, "run", fake_run(RunResult(polling_error=InputDecodeError("bad byte")))
        )
        assert cli.main([]) == 1
        assert capsys.readouterr().out == "Polling error: InputDecodeError('bad byte')\n"

    def test_both_errors_are_printed(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(
            app,
            "run",
            fake_run(
                RunResult(
                    polling_error=InputDecodeError("a"), drawing_error=DrawError("b")
                )
            ),
        )
        assert cli.main([]) == 1
        out = capsys.readouterr().out.splitlines()
        assert out == ["Polling error: InputDecodeError('a')", "Drawing error: DrawError('b')"]

    def test_terminal_error_exits_nonzero(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(
            app, "run", fake_run(error=TerminalModeError("stdin is not a terminal"))
        )
        assert cli.main([]) == 1
        assert "stdin is not a terminal" in capsys.readouterr().out

    def test_restore_failure_printed_after_task_error(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(
            app,
            "run",
            fake_run(
                RunResult(
                    polling_error=InputDecodeError("bad byte"),
                    terminal_error=TerminalModeError("cannot restore terminal"),
                )
            ),
        )
        assert cli.main([]) == 1
        assert capsys.readouterr().out.splitlines() == [
            "Polling error: InputDecodeError('bad byte')",
            "Terminal error: cannot restore terminal",
        ]

    def test_session_restore_failure_keeps_polling_error(self, monkeypatch, capsys) -> None:
        session = VirtualTerminal(
            source=ScriptedKeySource(error=InputDecodeError("bad byte"))
        )
        session.fail_leave = TerminalModeError("cannot restore terminal")
        monkeypatch.setattr(terminal, "ProcessTerminal", lambda: session)

        assert cli.main([]) == 1
        assert capsys.readouterr().out.splitlines() == [
            "Polling error: InputDecodeError('bad byte')",
            "Terminal error: cannot restore terminal",
        ]
        assert session.leave_count == 1

    def test_rejects_unknown_flags(self) -> None:
        with pytest.raises(SystemExit):
            cli.main(["--bogus"])
