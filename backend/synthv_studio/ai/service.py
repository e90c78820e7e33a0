"""The remote generation capability the orchestrator talks to.

`StudioService` is built fresh for each submission from the credential that
was effective at that moment, so a key change in the UI applies to the next
run without any cache invalidation.
"""

from __future__ import annotations

import asyncio
from typing import List, Protocol

from ..config import Settings
from ..models import OperationHandle
from .genai_client import GenAIClient
from .openai_client import OpenAIClient


class GenerationService(Protocol):
    async def generate_text(self, prompt: str) -> str: ...

    async def generate_images(
        self,
        prompt: str,
        number_of_images: int,
        output_mime_type: str,
        aspect_ratio: str,
    ) -> List[bytes]: ...

    async def submit_video(
        self, prompt: str, image: bytes | None, image_mime_type: str
    ) -> OperationHandle: ...

    async def poll_video(self, handle: OperationHandle) -> OperationHandle: ...


class StudioService:
    def __init__(self, text_client: OpenAIClient, media_client: GenAIClient):
        self.text_client = text_client
        self.media_client = media_client

    async def generate_text(self, prompt: str) -> str:
        # The OpenAI SDK call blocks; keep the event loop free while it runs.
        return await asyncio.to_thread(self.text_client.complete, prompt)

    async def generate_images(
        self,
        prompt: str,
        number_of_images: int,
        output_mime_type: str,
        aspect_ratio: str,
    ) -> List[bytes]:
        return await self.media_client.generate_images(
            prompt,
            number_of_images=number_of_images,
            output_mime_type=output_mime_type,
            aspect_ratio=aspect_ratio,
        )

    async def submit_video(
        self, prompt: str, image: bytes | None, image_mime_type: str
    ) -> OperationHandle:
        return await self.media_client.submit_video(prompt, image, image_mime_type)

    async def poll_video(self, handle: OperationHandle) -> OperationHandle:
        return await self.media_client.poll_video(handle)


def create_text_client(credential: str, settings: Settings) -> OpenAIClient:
    return OpenAIClient(
        api_key=credential,
        base_url=settings.openai_base_url,
        fallback_configs=settings.text_fallbacks,
        default_chat_model=settings.text_model,
    )


def create_service(credential: str, settings: Settings) -> StudioService:
    return StudioService(
        text_client=create_text_client(credential, settings),
        media_client=GenAIClient(
            api_key=credential,
            image_model=settings.image_model,
            video_model=settings.video_model,
        ),
    )
