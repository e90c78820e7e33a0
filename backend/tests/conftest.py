"""Shared fakes for the generation service, HTTP downloads and timers."""

from __future__ import annotations

import pytest

from synthv_studio.config import Settings
from synthv_studio.models import OperationHandle
from synthv_studio.orchestration.batch import BatchCoordinator
from synthv_studio.orchestration.fetcher import AssetFetcher
from synthv_studio.orchestration.orchestrator import JobOrchestrator
from synthv_studio.session import SessionState

VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc:download?alt=media"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 64


class FakeService:
    """Stands in for `StudioService`; records every remote call in order."""

    def __init__(
        self,
        polls_until_done: int | None = 0,
        video_uri: str | None = VIDEO_URI,
        fail_prompts: tuple[str, ...] = (),
        operation_error: str | None = None,
        images: tuple[bytes, ...] = (b"jpeg-1",),
        text: str = "INT. DESERT OUTPOST - NIGHT",
    ):
        self.polls_until_done = polls_until_done
        self.video_uri = video_uri
        self.fail_prompts = fail_prompts
        self.operation_error = operation_error
        self.images = images
        self.text = text
        self.calls: list[tuple[str, str]] = []
        self.polls = 0

    def _maybe_fail(self, prompt: str) -> None:
        if prompt in self.fail_prompts:
            raise RuntimeError("quota exceeded")

    async def generate_text(self, prompt: str) -> str:
        self.calls.append(("text", prompt))
        self._maybe_fail(prompt)
        return self.text

    async def generate_images(self, prompt, number_of_images, output_mime_type, aspect_ratio):
        self.calls.append(("images", prompt))
        self._maybe_fail(prompt)
        return list(self.images[:number_of_images])

    def _handle(self, done: bool) -> OperationHandle:
        return OperationHandle(
            name="operations/veo-1",
            done=done,
            video_uri=self.video_uri if done else None,
            error_message=self.operation_error if done else None,
        )

    async def submit_video(self, prompt, image, image_mime_type):
        self.calls.append(("video", prompt))
        self._maybe_fail(prompt)
        self.polls = 0
        return self._handle(self.polls_until_done == 0)

    async def poll_video(self, handle):
        self.calls.append(("poll", handle.name))
        self.polls += 1
        done = self.polls_until_done is not None and self.polls >= self.polls_until_done
        return self._handle(done)

    @property
    def remote_calls(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] != "poll"]


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = VIDEO_BYTES):
        self.status_code = status_code
        self.content = content


class FakeHttp:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None):
        self.response = response or FakeResponse()
        self.error = error
        self.urls: list[str] = []

    def get(self, url: str, timeout: float | None = None):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.response


class FakeSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class Harness:
    def __init__(
        self,
        service: FakeService | None = None,
        credential: str = "test-key",
        fallback: str | None = None,
        settings: Settings | None = None,
        http: FakeHttp | None = None,
        **service_kwargs,
    ):
        self.service = service or FakeService(**service_kwargs)
        self.http = http or FakeHttp()
        self.sleep = FakeSleep()
        self.factory_keys: list[str] = []
        self.session = SessionState(credential=credential, fallback_source=lambda: fallback)
        self.progress: list[int] = []
        self.session.subscribe(lambda state: self.progress.append(state.progress))

        def _factory(key: str) -> FakeService:
            self.factory_keys.append(key)
            return self.service

        self.job = JobOrchestrator(
            self.session,
            _factory,
            settings=settings or Settings(poll_interval_seconds=10.0, poll_max_attempts=30),
            fetcher=AssetFetcher(self.session.assets, http=self.http),
            sleep=self.sleep,
        )
        self.batch = BatchCoordinator(self.session, self.job)


@pytest.fixture
def harness_factory():
    return Harness


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def fake_http():
    def _make(status_code: int = 200, content: bytes = VIDEO_BYTES, error: Exception | None = None):
        return FakeHttp(FakeResponse(status_code, content), error=error)

    return _make


class ScriptInterrupted(BaseException):
    """Mimics Streamlit's rerun/stop signals, which bypass `except Exception`."""


class InterruptOnce:
    """State listener that raises `ScriptInterrupted` the first time progress reaches `threshold`."""

    def __init__(self, threshold: int):
        self.threshold = threshold
        self.fired = False

    def __call__(self, state) -> None:
        if not self.fired and state.progress >= self.threshold:
            self.fired = True
            raise ScriptInterrupted()


@pytest.fixture
def interrupt_once():
    return InterruptOnce
