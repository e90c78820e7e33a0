"""Fixed-interval polling of a long-running remote operation."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import DEFAULT_POLL_INTERVAL_SECONDS, DEFAULT_POLL_MAX_ATTEMPTS
from ..errors import OperationTimeoutError, RemoteError
from ..models import OperationHandle

logger = logging.getLogger(__name__)

PollFn = Callable[[OperationHandle], Awaitable[OperationHandle]]
SleepFn = Callable[[float], Awaitable[None]]
ProgressFn = Callable[[float, str], None]

BASE_PROGRESS = 10
PROGRESS_SPAN = 80


def _check_attempts(max_attempts: int) -> int:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    return max_attempts


class OperationPoller:
    """Drives one operation handle until it is done or the attempt budget runs out.

    Progress moves from `base_progress` to `base_progress + progress_span`
    in equal steps, one per status check. No retries happen here: a timeout
    or a failed operation is terminal for this handle.
    """

    def __init__(
        self,
        poll: PollFn,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
        base_progress: int = BASE_PROGRESS,
        progress_span: int = PROGRESS_SPAN,
        sleep: SleepFn = asyncio.sleep,
    ):
        _check_attempts(max_attempts)
        self._poll = poll
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self.base_progress = base_progress
        self.progress_span = progress_span
        self._sleep = sleep
        self.attempts = 0

    async def drive(
        self,
        handle: OperationHandle,
        interval_seconds: float | None = None,
        max_attempts: int | None = None,
        on_progress: Optional[ProgressFn] = None,
    ) -> OperationHandle:
        interval = self.interval_seconds if interval_seconds is None else interval_seconds
        limit = self.max_attempts if max_attempts is None else _check_attempts(max_attempts)
        self.attempts = 0

        while not handle.done:
            if self.attempts >= limit:
                logger.warning(
                    "Operation %s still running after %d checks", handle.name, self.attempts
                )
                raise OperationTimeoutError(self.attempts, self.attempts * interval)

            await self._sleep(interval)
            try:
                handle = await self._poll(handle)
            except Exception as exc:
                raise RemoteError(f"Failed to check generation status: {exc}") from exc
            self.attempts += 1
            logger.debug("Polled %s (%d/%d) done=%s", handle.name, self.attempts, limit, handle.done)

            if on_progress is not None:
                progress = self.base_progress + (self.attempts / limit) * self.progress_span
                on_progress(progress, f"Rendering... status check {self.attempts}/{limit}")

        if handle.error_message:
            raise RemoteError(f"Video generation failed: {handle.error_message}")
        return handle
