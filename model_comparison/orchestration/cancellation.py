"""Cancellation signal shared by every layer of one comparison."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot cancellation flag backed by asyncio.Event.

    The caller keeps a reference and calls cancel(); the orchestrator,
    controller and executor check is_cancelled or await wait().

    Example:
        token = CancellationToken()
        task = asyncio.create_task(orchestrator.execute_comparison(..., cancellation=token))
        token.cancel()
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Signal cancellation. Idempotent."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until cancel() is called."""
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
