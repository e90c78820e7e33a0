"""Scene planner helpers: parsing, title cleanup and text export."""

import json

import pytest

from synthv_studio.errors import RemoteError, ValidationError
from synthv_studio.prompts import (
    Language,
    ScenePrompt,
    Topic,
    build_scene_request,
    generate_scene_prompts,
    generate_story_idea,
    generate_title,
    parse_scene_prompts,
    prompts_to_text,
    scene_video_prompt,
)


class _FakeTextClient:
    def __init__(self, content: str = "", error: Exception | None = None):
        self._content = content
        self._error = error
        self.calls: list[dict] = []

    def chat(self, messages, model=None, **kwargs):
        self.calls.append({"messages": messages, **kwargs})
        if self._error is not None:
            raise self._error
        return {"choices": [{"message": {"role": "assistant", "content": self._content}}]}

    def complete(self, prompt, system_prompt=None, **kwargs):
        response = self.chat([{"role": "user", "content": prompt}], **kwargs)
        return response["choices"][0]["message"]["content"]


SCENES_JSON = json.dumps(
    {
        "prompts": [
            {
                "sceneNumber": 1,
                "indonesianPrompt": "Kucing ninja melompat di atap.",
                "englishPrompt": "A ninja cat leaps across rooftops.",
                "visualDescription": "Moonlit rooftops, a black cat mid-jump",
            },
            {
                "sceneNumber": 2,
                "indonesianPrompt": "",
                "englishPrompt": "The cat finds a glowing scroll.",
                "visualDescription": "Close-up of paws unrolling a glowing scroll",
            },
        ]
    }
)


def test_generate_scene_prompts_builds_plan():
    client = _FakeTextClient(SCENES_JSON)

    plan = generate_scene_prompts(client, 2, Topic.ADVENTURE, "A ninja cat hunts a scroll", Language.BOTH)

    assert plan.duration == 16
    assert [p.scene_number for p in plan.prompts] == [1, 2]
    assert plan.prompts[1].narration == "The cat finds a glowing scroll."
    assert client.calls[0]["response_format"] == {"type": "json_object"}


def test_scene_request_mentions_language_and_duration():
    text = build_scene_request(3, Topic.EDUCATION, "Counting stars", Language.ENGLISH)

    assert "Number of Scenes: 3" in text
    assert "approximately 24 seconds" in text
    assert "only in English" in text


def test_malformed_scene_payload_is_remote_error():
    with pytest.raises(RemoteError):
        parse_scene_prompts("not json at all")
    with pytest.raises(RemoteError):
        parse_scene_prompts(json.dumps({"scenes": []}))


def test_scene_prompts_require_idea():
    with pytest.raises(ValidationError):
        generate_scene_prompts(_FakeTextClient(SCENES_JSON), 3, Topic.STORY, "  ", Language.BOTH)


def test_title_strips_quotes_and_asterisks():
    client = _FakeTextClient('**"The Scroll Thief"**')

    assert generate_title(client, "A ninja cat hunts a scroll") == "The Scroll Thief"
    assert generate_title(client, "") == ""
    assert len(client.calls) == 1


def test_story_idea_failure_is_remote_error():
    with pytest.raises(RemoteError):
        generate_story_idea(_FakeTextClient(error=RuntimeError("401")), Topic.ANIMAL)


def test_prompts_to_text_and_video_prompt():
    scenes = parse_scene_prompts(SCENES_JSON)

    text = prompts_to_text(scenes)
    assert text.count("\n\n---\n\n") == 1
    assert text.startswith("Scene 1\nVisual: Moonlit rooftops, a black cat mid-jump\n")
    assert "Prompt EN: The cat finds a glowing scroll." in text

    video_prompt = scene_video_prompt(scenes[0])
    assert "Visuals: Moonlit rooftops" in video_prompt
    assert 'Audio/Narration: "Kucing ninja melompat di atap."' in video_prompt


def test_scene_prompt_narration_falls_back_to_english():
    scene = ScenePrompt(3, "", "Hello", "A field")
    assert scene.narration == "Hello"
