"""Aspects that only shape the ``docker run`` invocation."""

import os
from dataclasses import dataclass
from typing import List, Optional

from guibox.aspects.base import Aspect
from guibox.errors import InvalidMountError
from guibox.models.config import Configuration


class NetHost(Aspect):
    """Share the host network namespace."""

    @property
    def name(self) -> str:
        return "net-host"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return ["--net", "host"]


class SysAdmin(Aspect):
    """Grant CAP_SYS_ADMIN, needed by browser sandboxes."""

    @property
    def name(self) -> str:
        return "sys-admin"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return ["--cap-add", "SYS_ADMIN"]


class Shm(Aspect):
    """Share the host /dev/shm."""

    @property
    def name(self) -> str:
        return "shm"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return ["-v", "/dev/shm:/dev/shm"]


class Name(Aspect):
    """Give the container a fixed name."""

    def __init__(self, container_name: str):
        self.container_name = container_name

    @property
    def name(self) -> str:
        return "name"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return ["--name", self.container_name]


class CPUShares(Aspect):
    """Relative CPU weight."""

    def __init__(self, shares: str):
        self.shares = str(shares)

    @property
    def name(self) -> str:
        return "cpu-shares"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return ["--cpu-shares", self.shares]


class Memory(Aspect):
    """Memory limit, e.g. ``3072mb``."""

    def __init__(self, limit: str):
        self.limit = str(limit)

    @property
    def name(self) -> str:
        return "memory"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return ["--memory", self.limit]


@dataclass(frozen=True)
class Mount:
    """Bind mount from a host path to a container path."""
    host_path: str
    container_path: str

    @classmethod
    def parse(cls, spec: str) -> "Mount":
        """Parse ``<host>:<container>``."""
        parts = spec.split(":")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise InvalidMountError(spec)
        return cls(host_path=os.path.expanduser(parts[0]), container_path=parts[1])

    def to_flag(self) -> str:
        return f"{self.host_path}:{self.container_path}"


class Mounts(Aspect):
    """Bind mounts supplied by the application or the user."""

    def __init__(self, mounts: List[Mount]):
        self.mounts = list(mounts)

    @property
    def name(self) -> str:
        return "mounts"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        flags = []
        for mount in self.mounts:
            flags.extend(["-v", mount.to_flag()])
        return flags
