"""
Identity — who the installer runs as, and who should own what it creates.

Run through ``sudo``, the process is privileged but everything it
materializes in the user's home must end up owned by the user who
invoked sudo. The identity is resolved once at startup and passed
explicitly to every filesystem primitive.
"""

from __future__ import annotations

import os
import pwd
from pathlib import Path

from pydantic import BaseModel


class Identity(BaseModel):
    """The owner of created files and the privilege level of the run."""

    user: str
    uid: int
    gid: int
    home: Path
    privileged: bool = False

    @classmethod
    def detect(cls) -> Identity:
        """Resolve the identity of the current process.

        When running as root under sudo, ownership goes to ``SUDO_USER``
        and paths are rooted at that user's home.
        """
        euid = os.geteuid()
        sudo_user = os.environ.get("SUDO_USER")
        if euid == 0 and sudo_user:
            entry = pwd.getpwnam(sudo_user)
            return cls(
                user=entry.pw_name,
                uid=entry.pw_uid,
                gid=entry.pw_gid,
                home=Path(entry.pw_dir),
                privileged=True,
            )

        entry = pwd.getpwuid(euid)
        return cls(
            user=entry.pw_name,
            uid=entry.pw_uid,
            gid=entry.pw_gid,
            home=Path(os.environ.get("HOME") or entry.pw_dir),
            privileged=euid == 0,
        )
