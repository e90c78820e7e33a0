"""google-genai wrapper tests with a fake async client surface."""

import asyncio
from types import SimpleNamespace

import pytest

from synthv_studio.ai.genai_client import GenAIClient, to_handle
from synthv_studio.errors import RemoteError


def _operation(done=False, uri=None, error=None, name="models/veo/operations/42"):
    response = None
    if uri is not None:
        response = SimpleNamespace(
            generated_videos=[SimpleNamespace(video=SimpleNamespace(uri=uri))]
        )
    return SimpleNamespace(name=name, done=done, response=response, result=None, error=error)


class _FakeModels:
    def __init__(self):
        self.video_kwargs = None

    async def generate_videos(self, **kwargs):
        self.video_kwargs = kwargs
        return _operation()

    async def generate_images(self, **kwargs):
        return SimpleNamespace(
            generated_images=[
                SimpleNamespace(image=SimpleNamespace(image_bytes=b"img-a")),
                SimpleNamespace(image=None),
            ]
        )


class _FakeOperations:
    async def get(self, operation):
        return _operation(done=True, uri="https://files.example/v.mp4", name=operation.name)


def _client():
    fake = SimpleNamespace(aio=SimpleNamespace(models=_FakeModels(), operations=_FakeOperations()))
    return GenAIClient(api_key="k", client=fake), fake


def test_to_handle_reads_uri_only_when_done():
    running = to_handle(_operation(done=False, uri="https://ignored"))
    finished = to_handle(_operation(done=True, uri="https://files.example/v.mp4"))

    assert running.video_uri is None
    assert finished.video_uri == "https://files.example/v.mp4"
    assert finished.name == "models/veo/operations/42"


def test_to_handle_surfaces_error_message():
    handle = to_handle(_operation(done=True, error={"code": 3, "message": "blocked"}))
    assert handle.error_message == "blocked"


def test_submit_and_poll_round_trip():
    client, fake = _client()

    handle = asyncio.run(client.submit_video("a fox", image=b"png-bytes"))
    assert handle.done is False
    assert fake.aio.models.video_kwargs["image"].image_bytes == b"png-bytes"

    polled = asyncio.run(client.poll_video(handle))
    assert polled.done is True
    assert polled.video_uri == "https://files.example/v.mp4"


def test_generate_images_skips_empty_entries():
    client, _ = _client()
    assert asyncio.run(client.generate_images("a lighthouse", number_of_images=2)) == [b"img-a"]


def test_generate_images_without_results_is_remote_error():
    client, fake = _client()

    async def _empty(**_kwargs):
        return SimpleNamespace(generated_images=[])

    fake.aio.models.generate_images = _empty
    with pytest.raises(RemoteError):
        asyncio.run(client.generate_images("nothing"))
