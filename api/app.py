# api/app.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from api.cover_letter import router as cover_letter_router
from api.jobs import router as jobs_router
from api.profile import router as profile_router
from api.resume import router as resume_router
from core.obs import JsonRepoLogger, Logger, NullLogger, bind_log_context
from core.settings import get_app_settings

SETTINGS = get_app_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # ----- startup -----
    logger = JsonRepoLogger(service=SETTINGS.service_name, env=SETTINGS.app_env)
    app.state.logger = logger
    logger.info("service.start", env=SETTINGS.app_env, service=SETTINGS.service_name)
    try:
        yield
    finally:
        # ----- shutdown -----
        logger.info("service.stop", env=SETTINGS.app_env, service=SETTINGS.service_name)


app = FastAPI(
    title="Apply.io API",
    version=SETTINGS.app_version,
    description="Resume parsing and cover letter generation with streamed progress",
    lifespan=lifespan,
)


def _access_logger() -> Logger:
    return getattr(app.state, "logger", None) or NullLogger()


# ----- Middleware -----


@app.middleware("http")
async def add_request_id(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """
    Attach a request ID to every request/response and log basic access info.
    """
    req_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.req_id = req_id

    with bind_log_context(req_id=req_id):
        _access_logger().info(
            "http.request",
            method=request.method,
            path=request.url.path,
            client=str(request.client.host if request.client else None),
        )

        response: Response = await call_next(request)
        response.headers["x-request-id"] = req_id

        _access_logger().info(
            "http.response",
            status_code=response.status_code,
            path=request.url.path,
        )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=SETTINGS.cors_allowlist(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----- Simple health & root -----


@app.get("/", tags=["meta"])
async def root(request: Request) -> dict[str, str | None]:
    return {
        "service": SETTINGS.service_name,
        "env": SETTINGS.app_env,
        "version": app.version,
        "request_id": getattr(request.state, "req_id", None),
    }


@app.get("/healthz", tags=["meta"])
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


# ----- Routers -----

app.include_router(resume_router, tags=["resume"])
app.include_router(cover_letter_router, tags=["cover-letter"])
app.include_router(profile_router, tags=["profile"])
app.include_router(jobs_router, tags=["jobs"])
