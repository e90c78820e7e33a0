"""Main Streamlit UI for SynthV Studio.

Tabs for creative text, single video, images and multi-segment batches.
Every generation goes through the backend controllers; this module only
collects input and renders `SessionState`.
"""

from __future__ import annotations

import asyncio
import html
import os
import sys
from pathlib import Path
from typing import Any, Callable, Coroutine

import streamlit as st

try:  # pragma: no cover - optional dependency at runtime
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover
    load_dotenv = None

# Ensure backend package is importable when running `streamlit run streamlit_app.py`.
ROOT = Path(__file__).resolve().parent
BACKEND_ROOT = ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))
if load_dotenv is not None:  # pragma: no branch
    load_dotenv(ROOT / ".env", override=False)

SECRET_ENV_KEYS = (
    "GEMINI_API_KEY",
    "GEMINI_TEXT_MODEL",
    "GEMINI_IMAGE_MODEL",
    "GEMINI_VIDEO_MODEL",
    "GEMINI_OPENAI_BASE_URL",
    "SYNTHV_POLL_INTERVAL_SECONDS",
    "SYNTHV_POLL_MAX_ATTEMPTS",
    "SYNTHV_LOG_LEVEL",
)


def _hydrate_env_from_streamlit_secrets() -> None:
    """Load Gemini config from Streamlit Secrets into env when not already set."""
    try:
        secrets = st.secrets.to_dict()  # type: ignore[attr-defined]
    except Exception:
        return

    gemini_block = secrets.get("gemini")
    if isinstance(gemini_block, dict):
        mapping = {
            "api_key": "GEMINI_API_KEY",
            "text_model": "GEMINI_TEXT_MODEL",
            "image_model": "GEMINI_IMAGE_MODEL",
            "video_model": "GEMINI_VIDEO_MODEL",
        }
        for secret_key, env_key in mapping.items():
            value = gemini_block.get(secret_key)
            if isinstance(value, str) and value.strip() and not os.getenv(env_key):
                os.environ[env_key] = value.strip()

    for key in SECRET_ENV_KEYS:
        value = secrets.get(key)
        if isinstance(value, str) and value.strip() and not os.getenv(key):
            os.environ[key] = value.strip()


_hydrate_env_from_streamlit_secrets()

from synthv_studio.ai.service import create_text_client  # noqa: E402
from synthv_studio.app import create_app  # noqa: E402
from synthv_studio.errors import GenerationError  # noqa: E402
from synthv_studio.logging_setup import configure_logging  # noqa: E402
from synthv_studio.models import (  # noqa: E402
    ASPECT_RATIOS,
    GenerationStatus,
    ImageRequest,
    TextRequest,
    VideoRequest,
)
from synthv_studio.prompts import (  # noqa: E402
    Language,
    Topic,
    generate_scene_prompts,
    generate_story_idea,
    generate_title,
    prompts_to_text,
    scene_video_prompt,
)
from synthv_studio.session import IMAGE_SLOT, SINGLE_VIDEO_SLOT, TEXT_SLOT  # noqa: E402

IMAGE_FORMATS = {"JPEG": "image/jpeg", "PNG": "image/png"}
STATUS_LABELS = {
    GenerationStatus.IDLE: "Idle",
    GenerationStatus.GENERATING: "Generating...",
    GenerationStatus.SUCCESS: "Done",
    GenerationStatus.ERROR: "Error",
}
TOPIC_EMOJI = {
    Topic.ANIMATION: "😭😂",
    Topic.SONG: "🎵",
    Topic.STORY: "📚",
    Topic.ANIMAL: "🐾",
    Topic.ADVENTURE: "⚡️",
    Topic.EDUCATION: "🎓",
}


def _rerun() -> None:
    st.rerun()


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    return asyncio.run(coro)


def _get_app() -> dict[str, Any]:
    # One container per browser session; the session state must not be shared.
    if "sv_app" not in st.session_state:
        st.session_state["sv_app"] = create_app()
    return st.session_state["sv_app"]


def _init_state() -> None:
    defaults = {
        "sv_text_prompt": "Write a short opening scene for a sci-fi movie set on a desert planet.",
        "sv_video_prompt": "",
        "sv_image_prompt": "",
        "sv_aspect_ratio": ASPECT_RATIOS[0],
        "sv_image_count": 1,
        "sv_image_format": "JPEG",
        "sv_topic": Topic.ANIMATION.value,
        "sv_language": Language.BOTH.value,
        "sv_scenes": 3,
        "sv_story_idea": "",
        "sv_scene_plan": None,
        "sv_status_line": "Ready.",
    }
    for key, value in defaults.items():
        st.session_state.setdefault(key, value)


def _segment_label(item_id: str) -> str:
    return f"Segment {item_id[:4]}"


def _download_name(kind: str, index: int | None = None, extension: str = "mp4") -> str:
    suffix = f"-{index}" if index is not None else ""
    return f"synthv-{kind}{suffix}.{extension}"


def _extension_for(mime_type: str) -> str:
    return {"image/jpeg": "jpeg", "image/png": "png", "video/mp4": "mp4"}.get(mime_type, "bin")


def _progress_listener(bar: Any, caption: Any) -> Callable[[Any], None]:
    def _listener(state: Any) -> None:
        bar.progress(state.progress)
        caption.caption(state.message)

    return _listener


def _run_with_progress(coro_factory: Callable[[], Coroutine[Any, Any, Any]]) -> Any:
    """Run one generation while mirroring `GenerationState` into live widgets."""
    session = _get_app()["session"]
    bar = st.progress(0)
    caption = st.empty()
    unsubscribe = session.subscribe(_progress_listener(bar, caption))
    try:
        return _run(coro_factory())
    finally:
        unsubscribe()


def _require_text_client() -> Any | None:
    app = _get_app()
    credential = app["controllers"]["job"].resolve_credential()
    if not credential:
        app["session"].needs_credential = True
        st.warning("Please enter your Gemini API Key to proceed.")
        return None
    return create_text_client(credential, app["settings"])


def _settings_panel() -> None:
    session = _get_app()["session"]
    st.sidebar.markdown("## Settings")
    with st.sidebar.expander("Gemini API Key", expanded=session.needs_credential or not session.credential):
        value = st.text_input(
            "API key",
            value=session.credential,
            type="password",
            placeholder="Enter your Gemini API key",
        )
        if st.button("Save", use_container_width=True):
            session.set_credential(value)
            st.session_state["sv_status_line"] = "API key saved for this session."
            _rerun()
        st.caption("The key lives only in this browser session. GEMINI_API_KEY is used when empty.")

    if st.sidebar.button("Clear results", use_container_width=True):
        session.discard()
        _get_app()["controllers"]["job"].close()
        _rerun()


def _status_banner() -> None:
    state = _get_app()["session"].generation
    if state.status is GenerationStatus.ERROR:
        st.error(state.message)
    elif state.status is GenerationStatus.SUCCESS:
        st.success(state.message)
    else:
        st.caption(st.session_state["sv_status_line"])


def _prompt_tab() -> None:
    app = _get_app()
    session = app["session"]
    job = app["controllers"]["job"]
    busy = session.generation.is_generating

    st.subheader("Creative Text")
    st.caption(
        "Ask for anything creative. Generate a movie script, write a compelling narrative, "
        "brainstorm plot twists, or create character dialogues."
    )
    st.text_area("Prompt", key="sv_text_prompt", height=140)
    if st.button("Generate", key="gen_text", disabled=busy):
        _run_with_progress(lambda: job.run(TextRequest(st.session_state["sv_text_prompt"])))
        _rerun()

    text_artifact = session.artifact(TEXT_SLOT)
    if text_artifact and text_artifact.text:
        st.markdown(text_artifact.text)
        if st.button("Send to Batch", key="send_text_batch"):
            session.add_batch_item(prompt=text_artifact.text)
            st.session_state["sv_status_line"] = "Text sent to the batch tab."
            _rerun()

    st.markdown("---")
    st.subheader("Scene Planner")
    topics = [topic.value for topic in Topic]
    st.radio(
        "Topic",
        topics,
        key="sv_topic",
        horizontal=True,
        format_func=lambda value: f"{TOPIC_EMOJI[Topic(value)]} {value}",
    )
    st.number_input("Number of scenes", min_value=1, max_value=12, key="sv_scenes")

    col_idea, col_title = st.columns(2)
    if col_idea.button("🎲 Random Story Idea", use_container_width=True):
        client = _require_text_client()
        if client is not None:
            try:
                st.session_state["sv_story_idea"] = generate_story_idea(
                    client, Topic(st.session_state["sv_topic"])
                )
            except GenerationError as exc:
                st.error(exc.user_message)
            else:
                _rerun()
    if col_title.button("✨ Descriptive Title", use_container_width=True):
        client = _require_text_client()
        if client is not None:
            idea = st.session_state["sv_story_idea"]
            try:
                title = generate_title(client, idea)
            except GenerationError as exc:
                st.error(exc.user_message)
            else:
                if title:
                    st.session_state["sv_story_idea"] = f"{title}\n\n{idea}"
                _rerun()

    st.text_area("Story idea", key="sv_story_idea", height=120)
    st.radio("Output language", [lang.value for lang in Language], key="sv_language", horizontal=True)

    if st.button("🚀 Generate Scene Prompts", use_container_width=True):
        client = _require_text_client()
        if client is not None:
            try:
                st.session_state["sv_scene_plan"] = generate_scene_prompts(
                    client,
                    int(st.session_state["sv_scenes"]),
                    Topic(st.session_state["sv_topic"]),
                    st.session_state["sv_story_idea"],
                    Language(st.session_state["sv_language"]),
                )
            except GenerationError as exc:
                st.error(exc.user_message)

    plan = st.session_state["sv_scene_plan"]
    if plan is None:
        return

    stat_cols = st.columns(4)
    stat_cols[0].metric("Scenes", plan.scenes)
    stat_cols[1].metric("Duration", f"{plan.duration} s")
    stat_cols[2].metric("Created", len(plan.prompts))
    stat_cols[3].metric("Topic", plan.topic.value)

    for scene in plan.prompts:
        with st.container(border=True):
            st.markdown(f"**Scene {scene.scene_number}**")
            st.markdown(html.escape(scene.visual_description))
            if scene.indonesian_prompt:
                st.caption(f"🇮🇩 {scene.indonesian_prompt}")
            if scene.english_prompt:
                st.caption(f"🇬🇧 {scene.english_prompt}")

    col_save, col_send = st.columns(2)
    col_save.download_button(
        "Save Prompts",
        data=prompts_to_text(plan.prompts),
        file_name="hasil-prompt.txt",
        mime="text/plain",
        use_container_width=True,
    )
    if col_send.button("Send Scenes to Batch", use_container_width=True):
        session.load_batch(scene_video_prompt(scene) for scene in plan.prompts)
        st.session_state["sv_status_line"] = f"{len(plan.prompts)} scenes loaded into the batch."
        _rerun()


def _video_tab() -> None:
    app = _get_app()
    session = app["session"]
    job = app["controllers"]["job"]

    left, right = st.columns(2)
    with left:
        st.text_area("Prompt", key="sv_video_prompt", height=140, placeholder="Describe your video scene...")
        upload = st.file_uploader("Reference image (optional)", type=["png", "jpg", "jpeg"], key="sv_video_image")
        if st.button("Generate Video", disabled=session.generation.is_generating, use_container_width=True):
            request = VideoRequest(
                prompt=st.session_state["sv_video_prompt"],
                image=upload.getvalue() if upload else None,
                image_mime_type=upload.type if upload else "image/png",
            )
            _run_with_progress(lambda: job.run(request))
            _rerun()

    with right:
        artifact = session.artifact(SINGLE_VIDEO_SLOT)
        if artifact and artifact.assets:
            data = session.assets.read(artifact.assets[0])
            st.video(data)
            st.download_button("Download", data=data, file_name=_download_name("video"), mime="video/mp4")
        else:
            st.info("Video Preview")


def _image_tab() -> None:
    app = _get_app()
    session = app["session"]
    job = app["controllers"]["job"]

    left, right = st.columns(2)
    with left:
        st.text_area(
            "Prompt", key="sv_image_prompt", height=140, placeholder="Describe the image you want to create..."
        )
        st.selectbox("Aspect Ratio", ASPECT_RATIOS, key="sv_aspect_ratio")
        st.slider("Number of images", 1, 4, key="sv_image_count")
        st.selectbox("Output format", list(IMAGE_FORMATS), key="sv_image_format")
        if st.button("Generate Images", disabled=session.generation.is_generating, use_container_width=True):
            request = ImageRequest(
                prompt=st.session_state["sv_image_prompt"],
                number_of_images=int(st.session_state["sv_image_count"]),
                output_mime_type=IMAGE_FORMATS[st.session_state["sv_image_format"]],
                aspect_ratio=st.session_state["sv_aspect_ratio"],
            )
            _run_with_progress(lambda: job.run(request))
            _rerun()

    with right:
        artifact = session.artifact(IMAGE_SLOT)
        if not artifact or not artifact.assets:
            st.info("Generated images appear here.")
            return
        for index, handle in enumerate(artifact.assets, start=1):
            data = session.assets.read(handle)
            st.image(data, caption=f"Generated image {index}")
            st.download_button(
                "Download",
                data=data,
                file_name=_download_name("generated-image", index, _extension_for(handle.mime_type)),
                mime=handle.mime_type,
                key=f"dl_image_{index}",
            )


def _batch_tab() -> None:
    app = _get_app()
    session = app["session"]
    batch = app["controllers"]["batch"]
    busy = session.generation.is_generating

    top_add, top_run = st.columns(2)
    if top_add.button("➕ Add Segment", use_container_width=True):
        session.add_batch_item()
        _rerun()
    if top_run.button("Generate All", disabled=busy or not session.batch_items, use_container_width=True):
        _run_with_progress(batch.run_all)
        _rerun()

    if not session.batch_items:
        st.info("No segments yet. Add one or send scenes from the prompt generator.")
        return

    for item in list(session.batch_items):
        label = _segment_label(item.id)
        with st.container(border=True):
            st.markdown(f"**{html.escape(label)}** · {STATUS_LABELS[item.status]}")
            prompt = st.text_area("Prompt", value=item.prompt, key=f"seg_prompt_{item.id}", height=160)
            if prompt != item.prompt:
                session.update_batch_item(item.id, prompt=prompt)
            upload = st.file_uploader(
                "Image (optional)", type=["png", "jpg", "jpeg"], key=f"seg_image_{item.id}"
            )
            if upload is not None:
                session.update_batch_item(item.id, image=upload.getvalue(), image_mime_type=upload.type)

            if item.artifact and item.artifact.assets:
                data = session.assets.read(item.artifact.assets[0])
                st.video(data)
                st.download_button(
                    "Download",
                    data=data,
                    file_name=_download_name(f"segment-{item.id[:4]}"),
                    mime="video/mp4",
                    key=f"seg_dl_{item.id}",
                )
            if item.status is GenerationStatus.ERROR and item.error:
                st.error(item.error)
            if st.button("Delete", key=f"seg_del_{item.id}", disabled=busy):
                session.remove_batch_item(item.id)
                _rerun()


def main() -> None:
    st.set_page_config(page_title="SynthV Studio", page_icon="🎬", layout="wide")

    _init_state()
    app = _get_app()
    configure_logging(app["settings"].log_level)

    st.title("SynthV Studio")
    _settings_panel()
    _status_banner()

    tab_prompt, tab_video, tab_image, tab_batch = st.tabs(
        ["Prompt Generator", "Video", "Image", "Batch"]
    )
    with tab_prompt:
        _prompt_tab()
    with tab_video:
        _video_tab()
    with tab_image:
        _image_tab()
    with tab_batch:
        _batch_tab()


if __name__ == "__main__":
    main()
