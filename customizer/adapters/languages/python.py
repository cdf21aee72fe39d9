"""
Python adapter — private interpreter environments.

Creates virtual environments and runs pip / ``python -m`` inside them
for isolated-environment features.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import sys
import time
from pathlib import Path

from customizer.adapters.base import Adapter, ExecutionContext
from customizer.core.models.action import Receipt

logger = logging.getLogger(__name__)


class PythonAdapter(Adapter):
    """Virtual-environment operations.

    Action params:
        operation (str): One of 'venv', 'pip_install', 'module'.
        venv (str): Path of the environment.
        packages (list[str]): Packages to install (for 'pip_install').
        upgrade (bool): Pass ``-U`` to pip (for 'pip_install').
        module (str): ``python -m`` argument string (for 'module').
    """

    VALID_OPS = {"venv", "pip_install", "module"}

    @property
    def name(self) -> str:
        return "python"

    def is_available(self) -> bool:
        return bool(self._interpreter())

    def _interpreter(self) -> str:
        """Interpreter used to create new environments."""
        return shutil.which("python3") or sys.executable

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in self.VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.VALID_OPS))}"
        if not params.get("venv"):
            return False, "Missing required param: 'venv'"
        if operation == "pip_install" and not params.get("packages"):
            return False, "Missing required param: 'packages' for pip_install"
        if operation == "module" and not params.get("module"):
            return False, "Missing required param: 'module' for module"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        venv = Path(params["venv"])
        operation = params["operation"]

        if operation == "venv":
            cmd = [self._interpreter(), "-m", "venv", str(venv)]
        elif operation == "pip_install":
            cmd = [str(venv / "bin" / "python3"), "-m", "pip", "install"]
            if params.get("upgrade"):
                cmd.append("-U")
            cmd += list(params["packages"])
        else:
            cmd = [str(venv / "bin" / "python3"), "-m", *shlex.split(params["module"])]

        return self._run(context, cmd)

    def _run(self, context: ExecutionContext, cmd: list[str]) -> Receipt:
        logger.debug("Executing: %s", " ".join(cmd))
        start = time.monotonic()
        try:
            result = subprocess.run(
                cmd,
                cwd=context.working_dir,
                capture_output=True,
                text=True,
            )
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Python execution error: {e}",
                metadata={"command": cmd},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=result.stdout.strip(),
                duration_ms=elapsed_ms,
                metadata={"command": cmd},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=result.stderr.strip() or f"Exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={"command": cmd, "return_code": result.returncode},
        )
