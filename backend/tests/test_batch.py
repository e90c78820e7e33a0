"""BatchCoordinator ordering and isolated-failure tests."""

import asyncio

import pytest

from synthv_studio.errors import EmptyBatchError, ValidationError
from synthv_studio.models import GenerationStatus


def test_failed_item_does_not_stop_the_rest(harness_factory):
    h = harness_factory(fail_prompts=("scene two",))
    items = h.session.load_batch(["scene one", "scene two", "scene three"])

    result = asyncio.run(h.batch.run_all())

    assert result.statuses == [
        GenerationStatus.SUCCESS,
        GenerationStatus.ERROR,
        GenerationStatus.SUCCESS,
    ]
    assert result.batch_succeeded is False
    assert [o.item_id for o in result.outcomes] == [item.id for item in items]
    assert [prompt for kind, prompt in h.service.remote_calls] == [
        "scene one",
        "scene two",
        "scene three",
    ]
    assert items[1].error and "quota exceeded" in items[1].error
    assert items[0].artifact is not None and items[2].artifact is not None
    assert h.session.generation.status is GenerationStatus.ERROR
    assert "segment 2" in result.message
    assert h.session.generation.is_generating is False


def test_all_success_message(harness_factory):
    h = harness_factory()
    h.session.load_batch(["a", "b"])

    result = asyncio.run(h.batch.run_all())

    assert result.batch_succeeded is True
    assert result.message == "All 2 segments generated successfully!"
    assert h.session.generation.status is GenerationStatus.SUCCESS
    assert h.progress == sorted(h.progress)
    assert h.progress[-1] == 100


def test_empty_prompts_are_skipped(harness_factory):
    h = harness_factory()
    items = h.session.load_batch(["", "only real one", "   "])

    result = asyncio.run(h.batch.run_all())

    assert [o.item_id for o in result.outcomes] == [items[1].id]
    assert items[0].status is GenerationStatus.IDLE


def test_batch_without_prompts_fails_fast(harness_factory):
    h = harness_factory()
    h.session.load_batch(["", "  "])

    result = asyncio.run(h.batch.run_all())

    assert isinstance(result.error, EmptyBatchError)
    assert result.outcomes == []
    assert h.service.calls == []
    assert h.session.generation.status is GenerationStatus.ERROR


def test_batch_without_credential_asks_for_key(harness_factory):
    h = harness_factory(credential="", fallback=None)
    h.session.load_batch(["scene one"])

    result = asyncio.run(h.batch.run_all())

    assert isinstance(result.error, ValidationError)
    assert h.session.needs_credential is True
    assert h.service.calls == []


def test_rerun_resets_statuses_and_replaces_artifacts(harness_factory):
    h = harness_factory()
    items = h.session.load_batch(["scene one"])

    first = asyncio.run(h.batch.run_all())
    old_asset = first.outcomes[0].artifact.assets[0]
    second = asyncio.run(h.batch.run_all())

    assert items[0].status is GenerationStatus.SUCCESS
    assert old_asset not in h.session.assets
    assert second.outcomes[0].artifact.assets[0] in h.session.assets
    assert h.session.assets.released_count == 1


def test_interrupted_batch_clears_generating_flag(harness_factory, interrupt_once):
    h = harness_factory()
    items = h.session.load_batch(["scene one", "scene two"])
    h.session.subscribe(interrupt_once(20))

    with pytest.raises(BaseException) as excinfo:
        asyncio.run(h.batch.run_all())

    assert not isinstance(excinfo.value, Exception)
    assert h.session.generation.is_generating is False
    assert [item.status for item in items] == [GenerationStatus.ERROR, GenerationStatus.IDLE]
    assert items[0].error

    again = asyncio.run(h.batch.run_all())
    assert again.batch_succeeded is True


def test_discard_clears_batch_item_artifacts(harness_factory):
    h = harness_factory()
    items = h.session.load_batch(["scene one"])
    asyncio.run(h.batch.run_all())
    assert items[0].artifact is not None

    h.session.discard()

    assert items[0].artifact is None
    assert len(h.session.assets) == 0
