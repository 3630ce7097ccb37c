"""Resume upload routes: streaming progress and a one-shot variant."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse

from api.runtime import ApiRuntime, get_runtime
from api.streaming import sse_response
from core.events import EventChannel
from core.models import ParseResumeResult
from core.stream_pipeline import ResumeUpload, parse_resume_once

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def _read_upload(file: Optional[UploadFile], max_bytes: int) -> Optional[ResumeUpload]:
    if file is None:
        return None
    if file.size is not None and file.size > max_bytes:
        # Oversized: leave the body unread and let validation reject it.
        logger.info("parse_resume_api.oversized filename=%s size=%s", file.filename, file.size)
        return ResumeUpload(
            filename=file.filename,
            content_type=file.content_type,
            data=None,
            declared_size=file.size,
        )
    data = await file.read()
    return ResumeUpload(filename=file.filename, content_type=file.content_type, data=data)


@router.post("/parse-resume")
async def parse_resume_stream(
    file: Optional[UploadFile] = File(None),
    runtime: ApiRuntime = Depends(get_runtime),
) -> StreamingResponse:
    """Stream resume parsing progress as Server-Sent Events."""
    upload = await _read_upload(file, runtime.settings.max_upload_bytes)
    logger.info(
        "parse_resume_api.start filename=%s size=%s",
        upload.filename if upload else None,
        upload.size if upload else 0,
    )

    async def start(channel: EventChannel) -> None:
        await runtime.resume_pipeline.run(upload, channel)

    return sse_response(start)


@router.post("/parse-resume/sync", response_model=ParseResumeResult, response_model_by_alias=True)
async def parse_resume_sync(
    file: Optional[UploadFile] = File(None),
    runtime: ApiRuntime = Depends(get_runtime),
) -> ParseResumeResult:
    upload = await _read_upload(file, runtime.settings.max_upload_bytes)
    return await parse_resume_once(runtime.resume_pipeline, upload)
