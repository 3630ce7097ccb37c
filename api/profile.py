"""Profile load/save routes.

Store failures never surface as HTTP errors; they come back as
``{"success": false, "error": ...}`` envelopes.
"""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Depends
from pydantic import ValidationError

from api.runtime import ApiRuntime, get_runtime
from core.models import FromResumeRequest, LoadProfileResult, ProfileData, SaveProfileResult
from core.profile_store import merge_parsed_resume

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_STORE_ERRORS = (OSError, ValueError, ValidationError)


@router.get("/profile", response_model=LoadProfileResult, response_model_by_alias=True)
async def load_profile(runtime: ApiRuntime = Depends(get_runtime)) -> LoadProfileResult:
    try:
        data = await anyio.to_thread.run_sync(runtime.profile_store.load)
    except _STORE_ERRORS as exc:
        logger.warning("profile_api.load_failed error=%s", str(exc))
        return LoadProfileResult(success=False, error=str(exc) or "Failed to load profile")
    return LoadProfileResult(success=True, data=data)


@router.put("/profile", response_model=SaveProfileResult, response_model_by_alias=True)
async def save_profile(
    profile: ProfileData, runtime: ApiRuntime = Depends(get_runtime)
) -> SaveProfileResult:
    try:
        await anyio.to_thread.run_sync(runtime.profile_store.save, profile)
    except _STORE_ERRORS as exc:
        logger.warning("profile_api.save_failed error=%s", str(exc))
        return SaveProfileResult(success=False, error=str(exc) or "Failed to save profile")
    return SaveProfileResult(success=True)


@router.post(
    "/profile/from-resume", response_model=SaveProfileResult, response_model_by_alias=True
)
async def update_profile_from_resume(
    req: FromResumeRequest, runtime: ApiRuntime = Depends(get_runtime)
) -> SaveProfileResult:
    """Merge a parsed resume into the stored profile, keeping search preferences."""
    store = runtime.profile_store
    try:
        existing = await anyio.to_thread.run_sync(store.load)
    except _STORE_ERRORS as exc:
        # A broken existing record should not block a fresh import.
        logger.warning("profile_api.merge_load_failed error=%s", str(exc))
        existing = None
    merged = merge_parsed_resume(existing, req.data, req.raw_text)
    try:
        await anyio.to_thread.run_sync(store.save, merged)
    except _STORE_ERRORS as exc:
        logger.warning("profile_api.merge_save_failed error=%s", str(exc))
        return SaveProfileResult(success=False, error=str(exc) or "Failed to update profile")
    logger.info("profile_api.merged skills=%s experience=%s", len(merged.skills), len(merged.experience))
    return SaveProfileResult(success=True)
