"""google-genai wrapper for Imagen images and long-running Veo video operations."""

from __future__ import annotations

import logging
from typing import Any, List

from google import genai
from google.genai import types

from ..config import DEFAULT_IMAGE_MODEL, DEFAULT_VIDEO_MODEL
from ..errors import RemoteError
from ..models import OperationHandle

logger = logging.getLogger(__name__)


def _error_message(error: Any) -> str | None:
    if not error:
        return None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(getattr(error, "message", None) or error)


def _first_video_uri(operation: Any) -> str | None:
    response = getattr(operation, "response", None) or getattr(operation, "result", None)
    videos = getattr(response, "generated_videos", None) or []
    if not videos:
        return None
    video = getattr(videos[0], "video", None)
    return getattr(video, "uri", None)


def to_handle(operation: Any) -> OperationHandle:
    """Project a google-genai operation onto our `OperationHandle`."""
    done = bool(getattr(operation, "done", False))
    return OperationHandle(
        name=str(getattr(operation, "name", "") or ""),
        done=done,
        video_uri=_first_video_uri(operation) if done else None,
        error_message=_error_message(getattr(operation, "error", None)),
        raw=operation,
    )


class GenAIClient:
    def __init__(
        self,
        api_key: str,
        image_model: str = DEFAULT_IMAGE_MODEL,
        video_model: str = DEFAULT_VIDEO_MODEL,
        client: Any = None,
    ):
        self.image_model = image_model
        self.video_model = video_model
        self._client = client or genai.Client(api_key=api_key)

    async def generate_images(
        self,
        prompt: str,
        number_of_images: int = 1,
        output_mime_type: str = "image/jpeg",
        aspect_ratio: str = "1:1",
    ) -> List[bytes]:
        response = await self._client.aio.models.generate_images(
            model=self.image_model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=number_of_images,
                output_mime_type=output_mime_type,
                aspect_ratio=aspect_ratio,
            ),
        )
        images = [
            generated.image.image_bytes
            for generated in (getattr(response, "generated_images", None) or [])
            if getattr(generated, "image", None) is not None and generated.image.image_bytes
        ]
        if not images:
            raise RemoteError("Image generation returned no images.")
        return images

    async def submit_video(
        self,
        prompt: str,
        image: bytes | None = None,
        image_mime_type: str = "image/png",
    ) -> OperationHandle:
        kwargs: dict[str, Any] = {
            "model": self.video_model,
            "prompt": prompt,
            "config": types.GenerateVideosConfig(number_of_videos=1),
        }
        if image:
            kwargs["image"] = types.Image(image_bytes=image, mime_type=image_mime_type)
        operation = await self._client.aio.models.generate_videos(**kwargs)
        handle = to_handle(operation)
        logger.info("Submitted video operation %s", handle.name or "<unnamed>")
        return handle

    async def poll_video(self, handle: OperationHandle) -> OperationHandle:
        operation = await self._client.aio.operations.get(handle.raw)
        return to_handle(operation)
