"""
Action and Receipt models — the contract between installers and adapters.

Installers describe every external side effect (a package-manager call,
a clone, a fetch) as an Action. Adapters carry it out and answer with a
Receipt. Failures travel inside the Receipt, never as exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """One external operation requested by an installer."""

    id: str                          # e.g. "vlc:provision:install:vlc"
    name: str = ""                   # human-readable name
    adapter: str                     # which adapter handles this
    params: dict[str, Any] = Field(default_factory=dict)
    for_feature: str | None = None   # feature key (None = global step)


class Receipt(BaseModel):
    """Outcome of an action or of a whole installer step.

    ``skipped`` is used for the warning-and-continue cases: a launcher
    that cannot be found, an absent MIME associations file, and so on.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def combine(cls, adapter: str, action_id: str, receipts: list[Receipt]) -> Receipt:
        """Fold the receipts of several sub-actions into one.

        Failed if any sub-action failed, skipped if all were skipped,
        ok otherwise (including when there were none).
        """
        metadata = {"receipts": [r.model_dump(mode="json") for r in receipts]}
        output = "\n".join(r.output for r in receipts if r.output)
        failures = [r for r in receipts if r.failed]
        if failures:
            return cls.failure(
                adapter=adapter,
                action_id=action_id,
                error="; ".join(r.error or r.action_id for r in failures),
                output=output,
                metadata=metadata,
            )
        if receipts and all(r.skipped for r in receipts):
            return cls.skip(adapter=adapter, action_id=action_id, reason=output, metadata=metadata)
        return cls.success(adapter=adapter, action_id=action_id, output=output, metadata=metadata)

    @classmethod
    def skip(
        cls,
        adapter: str,
        action_id: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="skipped",
            output=reason,
            **kwargs,
        )
