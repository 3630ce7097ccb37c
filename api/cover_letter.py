"""Cover letter routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from api.runtime import ApiRuntime, get_runtime
from api.streaming import sse_response
from core.events import EventChannel
from core.models import CoverLetterRequest, CoverLetterResult
from core.stream_pipeline import generate_cover_letter_once

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.post("/generate-cover-letter")
async def generate_cover_letter_stream(
    req: CoverLetterRequest,
    runtime: ApiRuntime = Depends(get_runtime),
) -> StreamingResponse:
    logger.info("cover_letter_api.start job_id=%s", req.job_id)

    async def start(channel: EventChannel) -> None:
        await runtime.cover_letter_pipeline.run(req, channel)

    return sse_response(start)


@router.post(
    "/generate-cover-letter/sync",
    response_model=CoverLetterResult,
    response_model_by_alias=True,
)
async def generate_cover_letter_sync(
    req: CoverLetterRequest,
    runtime: ApiRuntime = Depends(get_runtime),
) -> CoverLetterResult:
    return await generate_cover_letter_once(runtime.cover_letter_pipeline, req)
