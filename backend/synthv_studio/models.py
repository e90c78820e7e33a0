"""Plain data types shared by the session, the orchestrator and the UI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .errors import GenerationError

ASPECT_RATIOS = ("1:1", "16:9", "9:16", "4:3", "3:4")


class GenerationStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    SUCCESS = "success"
    ERROR = "error"


class Modality(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class TextRequest:
    prompt: str

    modality = Modality.TEXT


@dataclass(frozen=True)
class ImageRequest:
    prompt: str
    number_of_images: int = 1
    output_mime_type: str = "image/jpeg"
    aspect_ratio: str = "1:1"

    modality = Modality.IMAGE


@dataclass(frozen=True)
class VideoRequest:
    prompt: str
    image: bytes | None = None
    image_mime_type: str = "image/png"

    modality = Modality.VIDEO


GenerationRequest = Union[TextRequest, ImageRequest, VideoRequest]


@dataclass
class OperationHandle:
    """Snapshot of a long-running remote operation."""

    name: str
    done: bool = False
    video_uri: str | None = None
    error_message: str | None = None
    raw: Any = None


@dataclass(frozen=True)
class AssetHandle:
    """Revocable reference to bytes held by an `AssetStore`."""

    uri: str
    mime_type: str
    size: int


@dataclass(frozen=True)
class Artifact:
    modality: Modality
    text: str | None = None
    assets: tuple[AssetHandle, ...] = ()


@dataclass
class GenerationState:
    is_generating: bool = False
    progress: int = 0
    message: str = ""
    status: GenerationStatus = GenerationStatus.IDLE


@dataclass
class BatchItem:
    id: str
    prompt: str = ""
    image: bytes | None = None
    image_mime_type: str = "image/png"
    status: GenerationStatus = GenerationStatus.IDLE
    artifact: Artifact | None = None
    error: str | None = None

    @property
    def slot(self) -> str:
        return f"batch:{self.id}"

    def to_request(self) -> VideoRequest:
        return VideoRequest(
            prompt=self.prompt,
            image=self.image,
            image_mime_type=self.image_mime_type,
        )


@dataclass(frozen=True)
class JobResult:
    artifact: Artifact | None = None
    error: GenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.artifact is not None


@dataclass(frozen=True)
class ItemOutcome:
    item_id: str
    status: GenerationStatus
    artifact: Artifact | None = None
    error: str | None = None


@dataclass(frozen=True)
class BatchResult:
    outcomes: list[ItemOutcome] = field(default_factory=list)
    batch_succeeded: bool = False
    message: str = ""
    error: GenerationError | None = None

    @property
    def statuses(self) -> list[GenerationStatus]:
        return [outcome.status for outcome in self.outcomes]
