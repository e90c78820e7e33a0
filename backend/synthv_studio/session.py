"""Session-scoped state: credential, live generation status and result slots.

Nothing here is persisted. A Streamlit session keeps one `SessionState` in
`st.session_state` and drops it when the browser tab goes away.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional

from .models import (
    Artifact,
    AssetHandle,
    BatchItem,
    GenerationState,
    GenerationStatus,
)

logger = logging.getLogger(__name__)

SINGLE_VIDEO_SLOT = "video"
IMAGE_SLOT = "images"
TEXT_SLOT = "text"

CREDENTIAL_ENV_KEYS = ("GEMINI_API_KEY", "API_KEY")

StateListener = Callable[[GenerationState], None]


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def resolve_credential(explicit: str | None, fallback: str | None) -> str | None:
    """Prefer the user-entered key; fall back to the environment-supplied one."""
    return _clean(explicit) or _clean(fallback)


def env_credential() -> str | None:
    for name in CREDENTIAL_ENV_KEYS:
        value = _clean(os.getenv(name))
        if value:
            return value
    return None


class AssetStore:
    """Registry of generated bytes addressed by revocable `blob:` URIs."""

    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}
        self.released_count = 0

    def create(self, data: bytes, mime_type: str) -> AssetHandle:
        uri = f"blob:synthv/{uuid.uuid4().hex}"
        self._blobs[uri] = bytes(data)
        return AssetHandle(uri=uri, mime_type=mime_type, size=len(data))

    def read(self, handle: AssetHandle) -> bytes:
        try:
            return self._blobs[handle.uri]
        except KeyError:
            raise KeyError(f"Asset {handle.uri} has been released") from None

    def release(self, handle: AssetHandle) -> bool:
        if self._blobs.pop(handle.uri, None) is None:
            return False
        self.released_count += 1
        return True

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, AssetHandle) and handle.uri in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)


class SessionState:
    """Holds everything one user session knows about its generations.

    Only the orchestrator and the batch coordinator call the mutating
    generation/slot methods; the UI reads `generation`, `artifact()` and
    `batch_items`.
    """

    def __init__(
        self,
        credential: str = "",
        fallback_source: Callable[[], Optional[str]] = env_credential,
        assets: AssetStore | None = None,
    ):
        self.credential = credential
        self._fallback_source = fallback_source
        self.assets = assets or AssetStore()
        self.generation = GenerationState()
        self.needs_credential = False
        self.batch_items: List[BatchItem] = []
        self._slots: Dict[str, Artifact] = {}
        self._listeners: List[StateListener] = []

    # -- credential -------------------------------------------------------

    def fallback_credential(self) -> str | None:
        return self._fallback_source()

    def effective_credential(self) -> str | None:
        # The fallback is read fresh on every call and never copied into
        # `self.credential`.
        return resolve_credential(self.credential, self.fallback_credential())

    def set_credential(self, value: str) -> None:
        self.credential = value.strip()
        if self.credential:
            self.needs_credential = False

    # -- generation state -------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self) -> None:
        snapshot = replace(self.generation)
        for listener in list(self._listeners):
            listener(snapshot)

    def begin_run(self, message: str) -> None:
        self.needs_credential = False
        self.generation = GenerationState(
            is_generating=True,
            progress=0,
            message=message,
            status=GenerationStatus.GENERATING,
        )
        self._publish()

    def report_progress(self, progress: float, message: str | None = None) -> None:
        value = max(0, min(100, int(progress)))
        # Progress never moves backwards within a run.
        self.generation.progress = max(self.generation.progress, value)
        if message is not None:
            self.generation.message = message
        self._publish()

    def finish(self, status: GenerationStatus, message: str) -> None:
        self.generation.is_generating = False
        self.generation.status = status
        self.generation.message = message
        if status is GenerationStatus.SUCCESS:
            self.generation.progress = 100
        self._publish()

    def fail_validation(self, message: str, needs_credential: bool) -> None:
        # Leaves slots and progress untouched; only the status line changes.
        self.needs_credential = needs_credential
        self.generation.is_generating = False
        self.generation.status = GenerationStatus.ERROR
        self.generation.message = message
        self._publish()

    # -- artifact slots ---------------------------------------------------

    def artifact(self, slot: str) -> Artifact | None:
        return self._slots.get(slot)

    def release_slot(self, slot: str) -> None:
        artifact = self._slots.pop(slot, None)
        if artifact is None:
            return
        for item in self.batch_items:
            if item.slot == slot:
                item.artifact = None
        for handle in artifact.assets:
            self.assets.release(handle)
        logger.debug("Released %d asset(s) from slot %s", len(artifact.assets), slot)

    def assign_artifact(self, slot: str, artifact: Artifact) -> None:
        self.release_slot(slot)
        self._slots[slot] = artifact

    def discard(self) -> None:
        for slot in list(self._slots):
            self.release_slot(slot)

    # -- batch items ------------------------------------------------------

    def add_batch_item(
        self,
        prompt: str = "",
        image: bytes | None = None,
        image_mime_type: str = "image/png",
    ) -> BatchItem:
        item = BatchItem(
            id=uuid.uuid4().hex,
            prompt=prompt,
            image=image,
            image_mime_type=image_mime_type,
        )
        self.batch_items.append(item)
        return item

    def batch_item(self, item_id: str) -> BatchItem | None:
        for item in self.batch_items:
            if item.id == item_id:
                return item
        return None

    def update_batch_item(self, item_id: str, **changes) -> BatchItem | None:
        item = self.batch_item(item_id)
        if item is None:
            return None
        for key, value in changes.items():
            if key == "id" or not hasattr(item, key):
                raise AttributeError(f"Cannot update batch item field {key!r}")
            setattr(item, key, value)
        return item

    def remove_batch_item(self, item_id: str) -> None:
        item = self.batch_item(item_id)
        if item is None:
            return
        self.release_slot(item.slot)
        self.batch_items.remove(item)

    def load_batch(self, prompts: Iterable[str]) -> List[BatchItem]:
        """Replace the batch with one fresh item per prompt."""
        for item in list(self.batch_items):
            self.remove_batch_item(item.id)
        return [self.add_batch_item(prompt=prompt) for prompt in prompts]
