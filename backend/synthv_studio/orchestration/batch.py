"""Sequential multi-segment video generation with per-item failure isolation."""

from __future__ import annotations

import logging
from typing import List, Sequence

from ..errors import EmptyBatchError, GenerationError, RemoteError, ValidationError
from ..models import BatchItem, BatchResult, GenerationStatus, ItemOutcome
from ..session import SessionState
from .orchestrator import (
    BUSY_MESSAGE,
    INTERRUPTED_MESSAGE,
    MISSING_CREDENTIAL_MESSAGE,
    JobOrchestrator,
)

logger = logging.getLogger(__name__)


def summarize_batch(outcomes: Sequence[ItemOutcome]) -> str:
    total = len(outcomes)
    failed = [str(idx) for idx, outcome in enumerate(outcomes, start=1)
              if outcome.status is GenerationStatus.ERROR]
    if not failed:
        return f"All {total} segments generated successfully!"
    label = "segment" if len(failed) == 1 else "segments"
    return (
        f"Batch completed with errors: {len(failed)} of {total} failed "
        f"({label} {', '.join(failed)})."
    )


class BatchCoordinator:
    """Runs batch items one after another through `JobOrchestrator.execute`.

    Items run strictly in list order so at most one remote operation is in
    flight. An item's failure is recorded on that item and the loop moves on.
    """

    def __init__(self, session: SessionState, orchestrator: JobOrchestrator):
        self.session = session
        self.orchestrator = orchestrator

    def _reject(self, error: ValidationError) -> BatchResult:
        self.session.fail_validation(error.user_message, error.needs_credential)
        return BatchResult(message=error.user_message, error=error)

    async def run_all(
        self,
        items: Sequence[BatchItem] | None = None,
        credential: str | None = None,
    ) -> BatchResult:
        if self.session.generation.is_generating:
            error = ValidationError(BUSY_MESSAGE)
            return BatchResult(message=error.user_message, error=error)

        resolved = self.orchestrator.resolve_credential(credential)
        if not resolved:
            return self._reject(ValidationError(MISSING_CREDENTIAL_MESSAGE, needs_credential=True))

        candidates = self.session.batch_items if items is None else items
        runnable = [item for item in candidates if item.prompt and item.prompt.strip()]
        if not runnable:
            return self._reject(EmptyBatchError())

        for item in runnable:
            item.status = GenerationStatus.IDLE
            item.error = None

        total = len(runnable)
        self.session.begin_run(f"Starting batch generation for {total} segments...")
        logger.info("Batch run started with %d segments", total)

        outcomes: List[ItemOutcome] = []
        try:
            for index, item in enumerate(runnable):
                outcomes.append(await self._run_item(index, total, item, resolved))
        except BaseException:
            logger.info("Batch run interrupted after %d of %d segments", len(outcomes), total)
            for item in runnable:
                if item.status is GenerationStatus.GENERATING:
                    item.status = GenerationStatus.ERROR
                    item.error = INTERRUPTED_MESSAGE
            self.session.finish(GenerationStatus.ERROR, INTERRUPTED_MESSAGE)
            raise

        succeeded = all(outcome.status is GenerationStatus.SUCCESS for outcome in outcomes)
        message = summarize_batch(outcomes)
        self.session.finish(
            GenerationStatus.SUCCESS if succeeded else GenerationStatus.ERROR, message
        )
        logger.info(message)
        return BatchResult(outcomes=outcomes, batch_succeeded=succeeded, message=message)

    async def _run_item(
        self, index: int, total: int, item: BatchItem, credential: str
    ) -> ItemOutcome:
        label = f"Segment {index + 1}/{total}"
        item.status = GenerationStatus.GENERATING
        item.artifact = None
        self.session.report_progress(index / total * 100, f"{label}: starting...")

        def _progress(value: float, message: str) -> None:
            self.session.report_progress((index + value / 100) / total * 100, f"{label}: {message}")

        try:
            artifact = await self.orchestrator.execute(
                item.to_request(), credential, item.slot, on_progress=_progress
            )
        except GenerationError as exc:
            return self._fail(item, label, exc)
        except Exception as exc:
            logger.exception("Unexpected failure in %s", label)
            return self._fail(item, label, RemoteError(f"An unknown error occurred: {exc}"))

        item.status = GenerationStatus.SUCCESS
        item.artifact = artifact
        return ItemOutcome(item_id=item.id, status=item.status, artifact=artifact)

    def _fail(self, item: BatchItem, label: str, error: GenerationError) -> ItemOutcome:
        logger.warning("%s failed: %s", label, error.user_message)
        item.status = GenerationStatus.ERROR
        item.error = error.user_message
        return ItemOutcome(item_id=item.id, status=item.status, error=item.error)
