"""Compensating-action log for multi-store writes.

The project write pipeline touches the database and the blob store, which
share no transaction. Every step with a durable effect registers its inverse
here; on failure the inverses run newest first.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from audit_api.utils.secure_logging import log_error

logger = logging.getLogger(__name__)

Inverse = Callable[[], Awaitable[object]]


@dataclass
class _Compensation:
    description: str
    inverse: Inverse


@dataclass
class CompensationLog:
    """Per-call stack of inverse actions."""

    label: str = "write"
    _entries: list[_Compensation] = field(default_factory=list)

    def register(self, description: str, inverse: Inverse) -> None:
        """Queue the inverse of an effect that just became durable.

        Args:
            description: Short human-readable name of the effect being undone
            inverse: Zero-argument coroutine function performing the undo
        """
        self._entries.append(_Compensation(description, inverse))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def descriptions(self) -> list[str]:
        return [entry.description for entry in self._entries]

    def clear(self) -> None:
        """Forget all inverses once the call has succeeded."""
        self._entries.clear()

    async def unwind(self) -> int:
        """Run every registered inverse in reverse registration order.

        A failing inverse is logged and skipped so the remaining ones still run.

        Returns:
            Number of inverses that failed
        """
        failures = 0
        while self._entries:
            entry = self._entries.pop()
            try:
                await entry.inverse()
            except Exception as e:
                failures += 1
                log_error(logger, f"Compensation failed during {self.label}: {entry.description}", e)
            else:
                logger.info("Compensated %s: %s", self.label, entry.description)
        return failures
