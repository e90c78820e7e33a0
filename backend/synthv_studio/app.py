"""Backend application factory.

Same "service container" style as before: `create_app` returns a dictionary
of settings, session state and controllers. The Streamlit layer keeps one
container per browser session.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Optional

try:  # pragma: no cover - optional dependency at runtime
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover
    load_dotenv = None

from .ai.service import GenerationService, create_service
from .config import Settings, load_settings
from .orchestration.batch import BatchCoordinator
from .orchestration.orchestrator import JobOrchestrator
from .session import SessionState, env_credential

# Ensure local `.env` values are available when running via Streamlit/CLI.
if load_dotenv is not None:  # pragma: no branch
    load_dotenv(Path(__file__).resolve().parents[2] / ".env", override=False)


def create_app(
    settings: Settings | None = None,
    service_factory: Optional[Callable[[str], GenerationService]] = None,
    credential: str = "",
    sleep: Callable[[float], Any] = asyncio.sleep,
) -> Dict[str, Any]:
    """Create the backend dependency container."""
    settings = settings or load_settings()

    def _default_factory(key: str) -> GenerationService:
        return create_service(key, settings)

    session = SessionState(credential=credential, fallback_source=env_credential)
    job = JobOrchestrator(
        session,
        service_factory or _default_factory,
        settings=settings,
        sleep=sleep,
    )

    return {
        "settings": settings,
        "session": session,
        "service_factory": service_factory or _default_factory,
        "controllers": {
            "job": job,
            "batch": BatchCoordinator(session, job),
        },
    }
