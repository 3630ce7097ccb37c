"""Process-wide collaborators shared by every route.

Built lazily on first use so importing the app never needs LLM credentials.
Routes receive the runtime through the ``get_runtime`` dependency, which
tests replace via ``app.dependency_overrides``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import threading

from agents.cover_letter_agent import CoverLetterAgent
from agents.resume_parser import ResumeParserAgent
from core.config import get_default_model
from core.jobs import JobCatalog
from core.llm_factory import get_async_llm_client
from core.obs import JsonRepoLogger, Logger
from core.pdf_text import PypdfTextExtractor
from core.profile_store import InMemoryProfileStore, JsonFileProfileStore, ProfileStore
from core.settings import PipelineSettings, get_app_settings, get_pipeline_settings
from core.stream_pipeline import CoverLetterPipeline, ResumeParsePipeline

logger = logging.getLogger(__name__)


@dataclass
class ApiRuntime:
    settings: PipelineSettings
    logger: Logger
    catalog: JobCatalog
    profile_store: ProfileStore
    resume_pipeline: ResumeParsePipeline
    cover_letter_pipeline: CoverLetterPipeline


_runtime: ApiRuntime | None = None
_runtime_lock = threading.Lock()


def _build_profile_store(settings: PipelineSettings) -> ProfileStore:
    if settings.profile_store_path:
        return JsonFileProfileStore(path=Path(settings.profile_store_path))
    return InMemoryProfileStore()


def _ensure_runtime() -> ApiRuntime:
    global _runtime  # noqa: PLW0603
    with _runtime_lock:
        if _runtime is not None:
            return _runtime

        app_settings = get_app_settings()
        settings = get_pipeline_settings()
        obs = JsonRepoLogger(service=app_settings.service_name, env=app_settings.app_env)
        model_name = get_default_model()
        # Provider chosen by LLM_PROVIDER; the agents only see the async port.
        llm = get_async_llm_client(logger=obs)
        catalog = JobCatalog()

        _runtime = ApiRuntime(
            settings=settings,
            logger=obs,
            catalog=catalog,
            profile_store=_build_profile_store(settings),
            resume_pipeline=ResumeParsePipeline(
                parser=ResumeParserAgent(llm=llm, model=model_name),
                extractor=PypdfTextExtractor(),
                settings=settings,
                logger=obs,
            ),
            cover_letter_pipeline=CoverLetterPipeline(
                writer=CoverLetterAgent(llm=llm, model=model_name),
                catalog=catalog,
                settings=settings,
                logger=obs,
            ),
        )
        logger.info(
            "api_runtime.started model=%s policy=%s",
            model_name,
            settings.quality_policy.value,
        )
        return _runtime


def get_runtime() -> ApiRuntime:
    return _ensure_runtime()
