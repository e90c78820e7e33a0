"""Story ideas, titles and per-scene prompts for short viral videos."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Sequence

from .ai.openai_client import OpenAIClient, extract_content
from .errors import RemoteError, ValidationError

logger = logging.getLogger(__name__)

SECONDS_PER_SCENE = 8


class Topic(str, Enum):
    ANIMATION = "Animasi"
    SONG = "Lagu"
    STORY = "Cerita"
    ANIMAL = "Hewan"
    ADVENTURE = "Petualangan"
    EDUCATION = "Edukasi"


class Language(str, Enum):
    BOTH = "Keduanya"
    INDONESIA = "Indonesia"
    ENGLISH = "English"


LANGUAGE_INSTRUCTIONS = {
    Language.BOTH: "Provide prompts in both Indonesian and English.",
    Language.INDONESIA: (
        "Provide prompts only in Indonesian. The English prompt field can be a short summary."
    ),
    Language.ENGLISH: (
        "Provide prompts only in English. The Indonesian prompt field can be a short summary."
    ),
}

SCENE_SYSTEM_PROMPT = (
    "You are an AI assistant specialized in creating viral short-form video content scripts. "
    "Your goal is to break down a story idea into distinct, visually engaging scenes. "
    'Respond with JSON only: {"prompts": [{"sceneNumber": int, "indonesianPrompt": str, '
    '"englishPrompt": str, "visualDescription": str}]}'
)


@dataclass(frozen=True)
class ScenePrompt:
    scene_number: int
    indonesian_prompt: str
    english_prompt: str
    visual_description: str

    @property
    def narration(self) -> str:
        return self.indonesian_prompt or self.english_prompt


@dataclass
class ScenePlan:
    scenes: int
    topic: Topic
    prompts: List[ScenePrompt] = field(default_factory=list)

    @property
    def duration(self) -> int:
        return self.scenes * SECONDS_PER_SCENE


def generate_story_idea(client: OpenAIClient, topic: Topic) -> str:
    prompt = (
        f"Generate a one-sentence random, fun, and quirky story idea about the topic: "
        f"{topic.value}. Make it suitable for a viral short video."
    )
    try:
        return client.complete(prompt, temperature=1).strip()
    except Exception as exc:
        raise RemoteError(f"Could not generate story idea: {exc}") from exc


def generate_title(client: OpenAIClient, story_idea: str) -> str:
    if not story_idea.strip():
        return ""
    prompt = (
        "Generate a short, catchy, descriptive title for this story, suitable for a "
        f'social media video: "{story_idea}"'
    )
    try:
        title = client.complete(prompt, temperature=0.8)
    except Exception as exc:
        raise RemoteError(f"Could not generate title: {exc}") from exc
    return title.replace('"', "").replace("*", "").strip()


def build_scene_request(scenes: int, topic: Topic, story_idea: str, language: Language) -> str:
    return (
        f'Create a script for a short viral video based on this idea: "{story_idea}".\n\n'
        "Parameters:\n"
        f"- Topic: {topic.value}\n"
        f"- Number of Scenes: {scenes}\n"
        f"- Desired Language(s): {LANGUAGE_INSTRUCTIONS[language]}\n\n"
        "For each scene, provide the details above. The prompts should be concise and "
        "powerful, suitable for an AI video generator. The visual description should be "
        "vivid and detailed. The total video duration should be approximately "
        f"{scenes * SECONDS_PER_SCENE} seconds."
    )


def parse_scene_prompts(payload: str) -> List[ScenePrompt]:
    try:
        data: Any = json.loads(payload.strip())
    except json.JSONDecodeError as exc:
        raise RemoteError("Failed to generate details from AI.") from exc

    rows = data.get("prompts") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        raise RemoteError("Failed to generate details from AI.")

    prompts: list[ScenePrompt] = []
    for idx, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            continue
        try:
            number = int(row.get("sceneNumber", idx))
        except (TypeError, ValueError):
            number = idx
        prompts.append(
            ScenePrompt(
                scene_number=number,
                indonesian_prompt=str(row.get("indonesianPrompt") or "").strip(),
                english_prompt=str(row.get("englishPrompt") or "").strip(),
                visual_description=str(row.get("visualDescription") or "").strip(),
            )
        )
    return prompts


def generate_scene_prompts(
    client: OpenAIClient,
    scenes: int,
    topic: Topic,
    story_idea: str,
    language: Language,
) -> ScenePlan:
    if scenes < 1 or not story_idea.strip():
        raise ValidationError("Please provide a story idea and number of scenes.")
    try:
        payload = extract_content(
            client.chat(
                messages=[
                    {"role": "system", "content": SCENE_SYSTEM_PROMPT},
                    {"role": "user", "content": build_scene_request(scenes, topic, story_idea, language)},
                ],
                response_format={"type": "json_object"},
                temperature=0.7,
            )
        )
    except Exception as exc:
        logger.warning("Scene prompt generation failed: %s", exc)
        raise RemoteError("Failed to generate details from AI.") from exc
    return ScenePlan(scenes=scenes, topic=topic, prompts=parse_scene_prompts(payload))


def scene_video_prompt(scene: ScenePrompt) -> str:
    """Visual and narration prompt combined for a video-with-audio model."""
    return (
        "Generate a video with audio.\n"
        f"Visuals: {scene.visual_description}.\n"
        f'Audio/Narration: "{scene.narration}".'
    )


def prompts_to_text(prompts: Sequence[ScenePrompt]) -> str:
    return "\n\n---\n\n".join(
        f"Scene {p.scene_number}\n"
        f"Visual: {p.visual_description}\n"
        f"Prompt ID: {p.indonesian_prompt}\n"
        f"Prompt EN: {p.english_prompt}"
        for p in prompts
    )
