from __future__ import annotations
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
import structlog

from .core.errors import ArtifactNotFoundError, ValidationError, VizboxError
from .executor.base import ExecutionBackend
from .executor.docker_backend import DockerBackend
from .logging import setup_logging
from .services.artifact_store import ArtifactStore
from .services.job_service import JobManager
from .settings import Settings, load_settings

log = structlog.get_logger(__name__)


# --------- Schemas ---------
class VisualizeReq(BaseModel):
    language: Optional[str] = None
    code: Optional[str] = None


class VisualizeRes(BaseModel):
    visualizationUrl: str
    jobId: str
    logs: str
    exitCode: int


def create_app(settings: Optional[Settings] = None, backend: Optional[ExecutionBackend] = None) -> FastAPI:
    setup_logging()
    s = settings or load_settings()
    jobs = JobManager(s, backend or DockerBackend())
    artifacts = ArtifactStore(jobs.storage)

    app = FastAPI(title="vizbox")
    app.state.settings = s
    app.state.jobs = jobs
    app.state.artifacts = artifacts

    app.add_middleware(
        CORSMiddleware,
        allow_origins=s.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Type", "Content-Disposition"],
    )

    @app.exception_handler(VizboxError)
    async def vizbox_error(request: Request, exc: VizboxError):
        code = 400 if isinstance(exc, ValidationError) else 500
        return JSONResponse(status_code=code, content=exc.to_dict())

    # --------- Endpoints ---------

    @app.get("/")
    def root():
        return {"message": "Welcome to the vizbox API"}

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.post("/api/visualize", response_model=VisualizeRes)
    def visualize(req: VisualizeReq):
        res = jobs.submit(req.language, req.code)
        return VisualizeRes(
            visualizationUrl=res.artifact_url_path,
            jobId=res.job_id,
            logs=res.logs,
            exitCode=res.exit_status,
        )

    def serve(job_id: str, filename: str):
        try:
            art = artifacts.fetch(job_id, filename)
        except ArtifactNotFoundError:
            raise HTTPException(status_code=404, detail="artifact_not_found")
        headers = {**art.headers, "Content-Length": str(art.content_length)}
        return StreamingResponse(art.iter_bytes(), media_type=art.content_type, headers=headers)

    app.add_api_route(s.url_prefix.rstrip("/") + "/{job_id}/{filename}", serve, methods=["GET"])
    app.add_api_route("/direct-viz/{job_id}/{filename}", serve, methods=["GET"])
    return app
