"""Run the containerized program as the invoking host user."""

import grp
import logging
import os
import pwd
from dataclasses import dataclass
from typing import List, Optional

from guibox.aspects.base import Aspect
from guibox.errors import MissingUserError, MissingGroupError, SetupStepError
from guibox.models.aspect import SetupStep
from guibox.models.config import Configuration
from guibox.utils.process import run_command


logger = logging.getLogger(__name__)

ENV_USER = "GUIBOX_USER"
ENV_UID = "GUIBOX_UID"
ENV_GROUP = "GUIBOX_GROUP"
ENV_GID = "GUIBOX_GID"
ENV_HOME = "GUIBOX_HOME"


@dataclass(frozen=True)
class UserIdentity:
    """User and primary group the container command runs as."""
    user: str
    uid: int
    group: str
    gid: int
    home: str

    @classmethod
    def current(cls) -> "UserIdentity":
        """Look up the identity of this process on the host."""
        uid = os.getuid()
        gid = os.getgid()
        try:
            user_info = pwd.getpwuid(uid)
        except KeyError:
            raise MissingUserError(uid)
        try:
            group_info = grp.getgrgid(gid)
        except KeyError:
            raise MissingGroupError(gid)
        return cls(
            user=user_info.pw_name,
            uid=uid,
            group=group_info.gr_name,
            gid=gid,
            home=user_info.pw_dir,
        )

    @classmethod
    def from_env(cls) -> Optional["UserIdentity"]:
        """Identity handed to the container entrypoint, if any."""
        if ENV_USER not in os.environ:
            return None
        try:
            return cls(
                user=os.environ[ENV_USER],
                uid=int(os.environ[ENV_UID]),
                group=os.environ[ENV_GROUP],
                gid=int(os.environ[ENV_GID]),
                home=os.environ.get(ENV_HOME, f"/home/{os.environ[ENV_USER]}"),
            )
        except KeyError as e:
            raise MissingUserError(f"${e.args[0]} unset")
        except ValueError as e:
            raise MissingUserError(str(e))


def _tolerate_existing(description: str, cmd: List[str]) -> None:
    result = run_command(cmd, check=False)
    if result.returncode != 0 and "already exists" not in result.stderr:
        raise SetupStepError(description, result.stderr.strip() or f"exit status {result.returncode}")


class CurrentUser(Aspect):
    """Mirror the host user inside the container and drop privileges to it.

    On the host the identity comes from the password and group databases and
    is handed to the container through environment variables. Inside the
    container the entrypoint reads it back, creates a matching group and
    account, then escalates to that user for the real command.
    """

    def __init__(self, identity: Optional[UserIdentity] = None):
        self._identity = identity

    @property
    def name(self) -> str:
        return "current-user"

    def identity(self) -> UserIdentity:
        if self._identity is not None:
            return self._identity
        return UserIdentity.from_env() or UserIdentity.current()

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        identity = self.identity()
        return [
            "-e", f"{ENV_USER}={identity.user}",
            "-e", f"{ENV_UID}={identity.uid}",
            "-e", f"{ENV_GROUP}={identity.group}",
            "-e", f"{ENV_GID}={identity.gid}",
            "-e", f"{ENV_HOME}={identity.home}",
        ]

    def privileged_setup_steps(self) -> List[SetupStep]:
        identity = self.identity()

        def create_group():
            logger.info(f"Creating group '{identity.group}' (gid={identity.gid})")
            _tolerate_existing(
                "create group",
                ["groupadd", "-o", "-g", str(identity.gid), identity.group],
            )

        def create_account():
            logger.info(f"Creating user '{identity.user}' (uid={identity.uid})")
            _tolerate_existing(
                "create user",
                [
                    "useradd",
                    "-o",  # Allow duplicate UID
                    "-M",  # Home is bind mounted or created by the profile
                    "-u", str(identity.uid),
                    "-g", str(identity.gid),
                    "-d", identity.home,
                    "-s", "/bin/bash",
                    identity.user,
                ],
            )

        return [
            SetupStep(description=f"create group {identity.group}", action=create_group),
            SetupStep(
                description=f"create user {identity.user}",
                escalation_args=[
                    "--preserve-env",
                    "--set-home",
                    "-u", identity.user,
                    "-g", identity.group,
                ],
                action=create_account,
            ),
        ]
