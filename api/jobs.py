"""Job catalog routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from api.runtime import ApiRuntime, get_runtime
from core.models import Job

router = APIRouter(prefix="/api")


@router.get("/jobs", response_model=list[Job], response_model_by_alias=True)
async def list_jobs(runtime: ApiRuntime = Depends(get_runtime)) -> list[Job]:
    return runtime.catalog.list_jobs()


@router.get("/jobs/{job_id}", response_model=Job, response_model_by_alias=True)
async def get_job(job_id: str, runtime: ApiRuntime = Depends(get_runtime)) -> Job:
    job = runtime.catalog.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job
