"""Docker engine access."""

import logging
import shutil
from pathlib import Path
from typing import Iterator, List, Optional, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from guibox.errors import ContainerEngineError
from guibox.utils.process import run_command


logger = logging.getLogger(__name__)


class ContainerEngine(Protocol):
    """What the container manager needs from a container engine."""

    def build(self, context: bytes, tags: List[str], dockerfile: str = "Dockerfile") -> Iterator[str]:
        """Build an image from a tar context, yielding raw log lines as they arrive."""
        ...

    def run(self, flags: List[str]) -> int:
        """Run a container with ``flags`` and return its exit status."""
        ...


class BuildOutput(BaseModel):
    """One structured line of build output."""
    stream: Optional[str] = None
    error: Optional[str] = None


def parse_build_line(line: str) -> Optional[BuildOutput]:
    """Parse a build log line, returning None for anything unrecognised."""
    try:
        output = BuildOutput.model_validate_json(line)
    except ValidationError:
        logger.debug(f"Dropping unparseable build output: {line!r}")
        return None
    if output.stream is None and output.error is None:
        return None
    return output


class DockerEngine:
    """Docker engine reached through its API socket and CLI.

    Builds go through the Engine API so the log can be streamed as it is
    produced; runs go through ``docker run`` so the container gets this
    process' terminal.
    """

    def __init__(
        self,
        socket_path: str = "/var/run/docker.sock",
        docker_binary: str = "docker",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize docker engine client."""
        self.socket_path = Path(socket_path)
        self.docker_binary = docker_binary
        self.base_url = "http://localhost"
        self._transport = transport

    def _get_transport(self) -> httpx.BaseTransport:
        if self._transport is not None:
            return self._transport
        if not self.socket_path.exists():
            raise ContainerEngineError(f"Docker socket not found at {self.socket_path}")
        return httpx.HTTPTransport(uds=str(self.socket_path))

    def build(self, context: bytes, tags: List[str], dockerfile: str = "Dockerfile") -> Iterator[str]:
        """Submit a build and yield its raw JSON log lines lazily."""
        transport = self._get_transport()
        params = {"t": list(tags), "dockerfile": dockerfile, "rm": "1"}

        logger.info(f"Building image {', '.join(tags)}")
        try:
            with httpx.Client(transport=transport, base_url=self.base_url, timeout=None) as client:
                with client.stream(
                    "POST",
                    "/build",
                    params=params,
                    content=context,
                    headers={"Content-Type": "application/x-tar"},
                ) as response:
                    if response.status_code >= 400:
                        response.read()
                        raise ContainerEngineError(
                            f"HTTP error {response.status_code}: {response.text.strip()}"
                        )
                    for line in response.iter_lines():
                        if line:
                            yield line
        except httpx.RequestError as e:
            raise ContainerEngineError(f"Connection error: {e}") from e

    def run(self, flags: List[str]) -> int:
        """Run ``docker run`` attached to this terminal."""
        binary = shutil.which(self.docker_binary)
        if binary is None:
            raise ContainerEngineError(f"{self.docker_binary} not found on PATH")

        try:
            result = run_command([binary, "run", *flags], check=False, capture_output=False)
        except OSError as e:
            raise ContainerEngineError(f"Failed to start {binary}: {e}") from e
        if result.returncode != 0:
            logger.info(f"docker run exited with status {result.returncode}")
        return result.returncode
