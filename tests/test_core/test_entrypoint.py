"""Tests for entrypoint dispatch."""

import subprocess
from pathlib import Path
from typing import List
from unittest.mock import MagicMock, patch

import pytest

from guibox.aspects.base import Aspect
from guibox.core.entrypoint import (
    EntrypointDispatcher,
    EntrypointMode,
    PathEscalator,
    current_executable,
)
from guibox.errors import (
    EscalatorNotFoundError,
    ExecutablePathError,
    MissingEntrypointArgsError,
    NotInEntrypointModeError,
    SetupStepError,
)
from guibox.models.aspect import SetupStep


SENTINEL = "/guibox/entrypoint"


class SetupAspect(Aspect):
    """Aspect recording its setup steps."""

    def __init__(self, name, calls, escalation_args=(), fail_with=None):
        self._name = name
        self.calls = calls
        self.escalation_args = list(escalation_args)
        self.fail_with = fail_with

    @property
    def name(self) -> str:
        return self._name

    def privileged_setup_steps(self) -> List[SetupStep]:
        def action():
            self.calls.append(self._name)
            if self.fail_with is not None:
                raise self.fail_with

        return [SetupStep(
            description=f"setup {self._name}",
            escalation_args=self.escalation_args,
            action=action,
        )]


class FakeEscalator:
    """Escalator resolving to a fixed path."""

    def resolve(self) -> str:
        return "/usr/bin/sudo"


def dispatcher_at(path: str) -> EntrypointDispatcher:
    return EntrypointDispatcher(
        sentinel_path=SENTINEL,
        executable_path=lambda: Path(path),
        escalator=FakeEscalator(),
    )


class TestMode:
    """Test the two states."""

    def test_normal(self):
        """Test any path but the sentinel is normal mode."""
        assert dispatcher_at("/usr/local/bin/guibox-chrome").mode() is EntrypointMode.NORMAL

    def test_entrypoint(self):
        """Test the sentinel path is entrypoint mode."""
        assert dispatcher_at(SENTINEL).mode() is EntrypointMode.ENTRYPOINT

    def test_decided_once(self):
        """Test the executable path is looked up only once."""
        lookup = MagicMock(return_value=Path(SENTINEL))
        dispatcher = EntrypointDispatcher(SENTINEL, executable_path=lookup, escalator=FakeEscalator())

        dispatcher.mode()
        dispatcher.mode()

        lookup.assert_called_once()


class TestDispatch:
    """Test the entrypoint transition."""

    def test_guard_never_runs_setup(self):
        """Test normal mode refuses and runs no setup step."""
        calls = []

        with pytest.raises(NotInEntrypointModeError):
            dispatcher_at("/usr/bin/guibox-chrome").dispatch(
                [SetupAspect("user", calls)], ["guibox-chrome", "ls"]
            )

        assert calls == []

    @patch("guibox.core.entrypoint.run_command")
    def test_setup_runs_before_missing_args_check(self, mock_run):
        """Test setup is attempted even when no command was supplied."""
        calls = []

        with pytest.raises(MissingEntrypointArgsError):
            dispatcher_at(SENTINEL).dispatch([SetupAspect("user", calls)], [SENTINEL])

        assert calls == ["user"]
        mock_run.assert_not_called()

    @patch("guibox.core.entrypoint.run_command")
    def test_hands_off_through_escalator(self, mock_run):
        """Test escalation args accumulate in aspect order before the separator."""
        mock_run.return_value = MagicMock(returncode=7)
        calls = []
        aspects = [
            SetupAspect("first", calls, escalation_args=["--preserve-env"]),
            SetupAspect("second", calls, escalation_args=["-u", "wayne"]),
        ]

        status = dispatcher_at(SENTINEL).dispatch(aspects, [SENTINEL, "discord", "--flag"])

        assert status == 7
        assert calls == ["first", "second"]
        mock_run.assert_called_once_with(
            ["/usr/bin/sudo", "--preserve-env", "-u", "wayne", "--", "discord", "--flag"],
            check=False,
            capture_output=False,
        )

    @patch("guibox.core.entrypoint.run_command")
    def test_setup_failure_is_fatal(self, mock_run):
        """Test a failing step stops later steps and the hand-off."""
        calls = []
        aspects = [
            SetupAspect("first", calls, fail_with=subprocess.CalledProcessError(1, ["groupadd"])),
            SetupAspect("second", calls),
        ]

        with pytest.raises(SetupStepError):
            dispatcher_at(SENTINEL).dispatch(aspects, [SENTINEL, "discord"])

        assert calls == ["first"]
        mock_run.assert_not_called()

    def test_missing_escalator(self):
        """Test a missing escalator surfaces its own error."""
        dispatcher = EntrypointDispatcher(
            SENTINEL,
            executable_path=lambda: Path(SENTINEL),
            escalator=PathEscalator("definitely-not-a-real-escalator"),
        )

        with pytest.raises(EscalatorNotFoundError):
            dispatcher.dispatch([], [SENTINEL, "discord"])


class TestHelpers:
    """Test escalator and executable lookup."""

    @patch("guibox.core.entrypoint.shutil.which", return_value="/usr/bin/sudo")
    def test_path_escalator(self, mock_which):
        """Test the escalator is found on PATH."""
        assert PathEscalator().resolve() == "/usr/bin/sudo"
        mock_which.assert_called_once_with("sudo")

    def test_current_executable(self, tmp_path, monkeypatch):
        """Test the running program path is resolved."""
        script = tmp_path / "guibox-chrome"
        script.write_text("#!/bin/sh\n")
        link = tmp_path / "chrome"
        link.symlink_to(script)
        monkeypatch.setattr("sys.argv", [str(link)])

        assert current_executable() == script.resolve()

    def test_current_executable_missing(self, tmp_path, monkeypatch):
        """Test an unresolvable program path."""
        monkeypatch.setattr("sys.argv", [str(tmp_path / "gone")])

        with pytest.raises(ExecutablePathError):
            current_executable()
