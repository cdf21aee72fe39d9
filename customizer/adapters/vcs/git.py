"""
Git adapter — repository provisioning.

Only cloning is needed: repository-clone features are provisioned by
cloning their repository into the feature's artifacts directory.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from customizer.adapters.base import Adapter, ExecutionContext
from customizer.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Git operations through the git CLI.

    Action params:
        operation (str): 'clone'.
        url (str): Repository URL.
        dest (str): Directory to clone into.
        depth (int): Optional shallow-clone depth.
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation != "clone":
            return False, f"Unknown operation '{operation}'. Valid: clone"
        for required in ("url", "dest"):
            if not params.get(required):
                return False, f"Missing required param: '{required}'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        args = ["clone"]
        if params.get("depth"):
            args += ["--depth", str(params["depth"])]
        args += [params["url"], params["dest"]]

        try:
            result = self._git(args, context.working_dir)
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Git error: {e}",
            )

        if result.returncode != 0:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=result.stderr.strip() or f"git clone exited with {result.returncode}",
                metadata={"url": params["url"], "dest": params["dest"]},
            )
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Cloned {params['url']} into {params['dest']}",
            metadata={"url": params["url"], "dest": params["dest"]},
        )

    def _git(self, args: list[str], cwd: str | None) -> subprocess.CompletedProcess[str]:
        logger.debug("git %s", " ".join(args))
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
        )
