"""Single generation job: validate, submit, poll, download, publish.

`run` is the top-level entry a UI button calls. It owns the session's
`GenerationState` for the duration of the job and never lets an exception
escape. `execute` is the bare state machine; it raises `GenerationError`
and is shared with the batch coordinator, which keeps its own status.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from ..ai.service import GenerationService
from ..config import Settings
from ..errors import GenerationError, RemoteError, ValidationError
from ..models import (
    Artifact,
    GenerationRequest,
    GenerationStatus,
    JobResult,
    Modality,
)
from ..session import IMAGE_SLOT, SINGLE_VIDEO_SLOT, TEXT_SLOT, SessionState, resolve_credential
from .fetcher import AssetFetcher
from .poller import OperationPoller, ProgressFn, SleepFn

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[str], GenerationService]
T = TypeVar("T")

MISSING_CREDENTIAL_MESSAGE = "API Key is not set. Please add it in the settings."
EMPTY_PROMPT_MESSAGE = "Prompt cannot be empty."
BUSY_MESSAGE = "A generation is already in progress."
INTERRUPTED_MESSAGE = "Generation was interrupted. Please try again."

DEFAULT_SLOTS = {
    Modality.TEXT: TEXT_SLOT,
    Modality.IMAGE: IMAGE_SLOT,
    Modality.VIDEO: SINGLE_VIDEO_SLOT,
}

START_MESSAGES = {
    Modality.TEXT: "Writing...",
    Modality.IMAGE: "Generating images...",
    Modality.VIDEO: "Submitting video request...",
}

DONE_MESSAGES = {
    Modality.TEXT: "Text generated.",
    Modality.IMAGE: "Images generated successfully!",
    Modality.VIDEO: "Video generated successfully!",
}


def _ignore_progress(_progress: float, _message: str) -> None:
    return None


class JobOrchestrator:
    def __init__(
        self,
        session: SessionState,
        service_factory: ServiceFactory,
        settings: Settings | None = None,
        fetcher: AssetFetcher | None = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.session = session
        self.settings = settings or Settings()
        self._service_factory = service_factory
        self.fetcher = fetcher or AssetFetcher(
            session.assets, timeout=self.settings.download_timeout_seconds
        )
        self._sleep = sleep

    def close(self) -> None:
        self.fetcher.close()

    def resolve_credential(self, explicit: str | None = None) -> str | None:
        primary = self.session.credential if explicit is None else explicit
        return resolve_credential(primary, self.session.fallback_credential())

    def validate(self, request: GenerationRequest, credential: str | None = None) -> str:
        """Return the effective credential or raise `ValidationError`."""
        resolved = self.resolve_credential(credential)
        if not resolved:
            raise ValidationError(MISSING_CREDENTIAL_MESSAGE, needs_credential=True)
        if not request.prompt or not request.prompt.strip():
            raise ValidationError(EMPTY_PROMPT_MESSAGE)
        return resolved

    async def run(
        self,
        request: GenerationRequest,
        slot: str | None = None,
        credential: str | None = None,
    ) -> JobResult:
        if self.session.generation.is_generating:
            return JobResult(error=ValidationError(BUSY_MESSAGE))

        try:
            resolved = self.validate(request, credential)
        except ValidationError as exc:
            self.session.fail_validation(exc.user_message, exc.needs_credential)
            return JobResult(error=exc)

        modality = request.modality
        self.session.begin_run(START_MESSAGES[modality])
        try:
            artifact = await self.execute(
                request,
                resolved,
                slot or DEFAULT_SLOTS[modality],
                on_progress=self.session.report_progress,
            )
        except GenerationError as exc:
            logger.warning("%s generation failed: %s", modality.value, exc.user_message)
            self.session.finish(GenerationStatus.ERROR, exc.user_message)
            return JobResult(error=exc)
        except Exception as exc:
            logger.exception("Unexpected failure during %s generation", modality.value)
            error = RemoteError(f"An unknown error occurred: {exc}")
            self.session.finish(GenerationStatus.ERROR, error.user_message)
            return JobResult(error=error)
        except BaseException:
            # Streamlit reruns and task cancellation derive from BaseException.
            logger.info("%s generation interrupted", modality.value)
            self.session.finish(GenerationStatus.ERROR, INTERRUPTED_MESSAGE)
            raise

        self.session.finish(GenerationStatus.SUCCESS, DONE_MESSAGES[modality])
        return JobResult(artifact=artifact)

    async def execute(
        self,
        request: GenerationRequest,
        credential: str,
        slot: str,
        on_progress: Optional[ProgressFn] = None,
    ) -> Artifact:
        credential = self.validate(request, credential)
        progress = on_progress or _ignore_progress

        # The slot's previous result is released before anything new is produced.
        self.session.release_slot(slot)
        service = self._service_factory(credential)

        if request.modality is Modality.TEXT:
            artifact = await self._run_text(service, request, progress)
        elif request.modality is Modality.IMAGE:
            artifact = await self._run_images(service, request, progress)
        else:
            artifact = await self._run_video(service, request, credential, progress)

        self.session.assign_artifact(slot, artifact)
        progress(100, DONE_MESSAGES[request.modality])
        return artifact

    @staticmethod
    async def _submit(call: Awaitable[T]) -> T:
        try:
            return await call
        except GenerationError:
            raise
        except Exception as exc:
            raise RemoteError(f"Submission failed: {exc}") from exc

    async def _run_text(self, service, request, progress: ProgressFn) -> Artifact:
        progress(10, START_MESSAGES[Modality.TEXT])
        text = await self._submit(service.generate_text(request.prompt))
        return Artifact(modality=Modality.TEXT, text=text)

    async def _run_images(self, service, request, progress: ProgressFn) -> Artifact:
        progress(10, START_MESSAGES[Modality.IMAGE])
        images = await self._submit(
            service.generate_images(
                request.prompt,
                request.number_of_images,
                request.output_mime_type,
                request.aspect_ratio,
            )
        )
        progress(90, "Preparing images...")
        assets = tuple(self.session.assets.create(data, request.output_mime_type) for data in images)
        return Artifact(modality=Modality.IMAGE, assets=assets)

    async def _run_video(self, service, request, credential: str, progress: ProgressFn) -> Artifact:
        progress(5, START_MESSAGES[Modality.VIDEO])
        handle = await self._submit(
            service.submit_video(request.prompt, request.image, request.image_mime_type)
        )
        progress(10, "Video generation started. This may take a few minutes...")

        poller = OperationPoller(
            service.poll_video,
            interval_seconds=self.settings.poll_interval_seconds,
            max_attempts=self.settings.poll_max_attempts,
            sleep=self._sleep,
        )
        handle = await poller.drive(handle, on_progress=progress)

        progress(92, "Downloading video...")
        asset = await self.fetcher.resolve(handle.video_uri, credential)
        return Artifact(modality=Modality.VIDEO, assets=(asset,))
