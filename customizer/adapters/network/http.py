"""
HTTP adapter — fetch a URL into a local file.
"""

from __future__ import annotations

import logging
import shutil
import urllib.request
from pathlib import Path

from customizer import __version__
from customizer.adapters.base import Adapter, ExecutionContext
from customizer.core.models.action import Receipt

logger = logging.getLogger(__name__)

USER_AGENT = f"linux-auto-customizer/{__version__}"


class HttpAdapter(Adapter):
    """Download a URL to a file.

    Action params:
        url (str): What to fetch.
        dest (str): File to write.
        timeout (int | None): Socket timeout in seconds (default: none).
    """

    @property
    def name(self) -> str:
        return "http"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        for required in ("url", "dest"):
            if not context.action.params.get(required):
                return False, f"Missing required param: '{required}'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        url = context.action.params["url"]
        dest = Path(context.action.params["dest"])
        timeout = context.action.params.get("timeout")

        logger.info("Downloading %s", url)
        request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        try:
            with urllib.request.urlopen(request, timeout=timeout) as resp, open(dest, "wb") as out:
                shutil.copyfileobj(resp, out)
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Download failed: {e}",
                metadata={"url": url, "dest": str(dest)},
            )

        size = dest.stat().st_size
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Fetched {size} bytes into {dest}",
            metadata={"url": url, "dest": str(dest), "size": size},
        )
