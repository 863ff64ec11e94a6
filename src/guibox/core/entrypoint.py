"""Container entrypoint dispatch.

The same executable serves as the host CLI and as PID 1 of the containers it
starts. Which role it plays is decided once, from the resolved path of the
running executable: the manager mounts the executable at a fixed sentinel
path inside the container, so being found at that path means being the
entrypoint.
"""

import logging
import shutil
import subprocess
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from guibox.aspects.base import Aspect
from guibox.errors import (
    EscalatorNotFoundError,
    ExecutablePathError,
    GuiboxError,
    MissingEntrypointArgsError,
    NotInEntrypointModeError,
    SetupStepError,
)
from guibox.utils.process import run_command


logger = logging.getLogger(__name__)

ExecutablePathResolver = Callable[[], Path]


class EntrypointMode(Enum):
    """Role of the running process."""
    NORMAL = "normal"
    ENTRYPOINT = "entrypoint"


class PrivilegeEscalator(Protocol):
    """Locates the program used to run the container command as another user."""

    def resolve(self) -> str:
        ...


class PathEscalator:
    """Escalator found by name on ``PATH`` (``sudo`` by default)."""

    def __init__(self, name: str = "sudo"):
        self.name = name

    def resolve(self) -> str:
        path = shutil.which(self.name)
        if path is None:
            raise EscalatorNotFoundError(self.name)
        return path


def current_executable() -> Path:
    """Resolved path of the program this process was started as."""
    try:
        return Path(sys.argv[0]).resolve(strict=True)
    except (OSError, IndexError, RuntimeError) as e:
        raise ExecutablePathError(str(e)) from e


class EntrypointDispatcher:
    """Two-state machine: NORMAL on the host, ENTRYPOINT as container PID 1."""

    def __init__(
        self,
        sentinel_path: str,
        executable_path: ExecutablePathResolver = current_executable,
        escalator: Optional[PrivilegeEscalator] = None,
    ):
        self.sentinel_path = Path(sentinel_path)
        self.executable_path = executable_path
        self.escalator = escalator or PathEscalator()
        self._mode: Optional[EntrypointMode] = None
        self._path: Optional[Path] = None

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = self.executable_path()
        return self._path

    def mode(self) -> EntrypointMode:
        """Decide the process role; the answer never changes afterwards."""
        if self._mode is None:
            if self.path == self.sentinel_path:
                self._mode = EntrypointMode.ENTRYPOINT
            else:
                self._mode = EntrypointMode.NORMAL
            logger.debug(f"Running as {self.path} in {self._mode.value} mode")
        return self._mode

    def run_setup(self, aspects: Sequence[Aspect]) -> List[str]:
        """Run every privileged setup step and collect escalation arguments."""
        escalation_args: List[str] = []
        for aspect in aspects:
            for step in aspect.privileged_setup_steps():
                logger.info(f"[{aspect.name}] {step.description}")
                try:
                    step.action()
                except GuiboxError:
                    raise
                except (OSError, subprocess.SubprocessError) as e:
                    raise SetupStepError(step.description, str(e)) from e
                escalation_args.extend(step.escalation_args)
        return escalation_args

    def dispatch(self, aspects: Sequence[Aspect], argv: Sequence[str]) -> int:
        """Prepare the container and hand off to the requested command.

        ``argv`` is the raw argument vector; everything after the program name
        belongs to the downstream command. Setup runs before that command is
        validated, so a missing command is reported only once setup is done.
        """
        if self.mode() is not EntrypointMode.ENTRYPOINT:
            raise NotInEntrypointModeError(str(self.path))

        escalation_args = self.run_setup(aspects)

        if len(argv) < 2:
            raise MissingEntrypointArgsError()

        escalator = self.escalator.resolve()
        cmd = [escalator, *escalation_args, "--", *argv[1:]]
        logger.info(f"Handing off to {argv[1]}")
        result = run_command(cmd, check=False, capture_output=False)
        return result.returncode
