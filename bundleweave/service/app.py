"""FastAPI application entrypoint for bundleweave service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..build import CompileError
from ..config import ConfigError
from ..orchestrator import ConfigOutcome, Orchestrator
from ..serializer import SerializationError


class ConfigRequest(BaseModel):
    path: str
    extra_paths: List[str] = Field(default_factory=list)


class BundleModel(BaseModel):
    name: str
    components: List[str]
    templates: List[str]


class ConfigResponse(BaseModel):
    bundles: List[BundleModel]
    extra_paths: Optional[List[str]] = None
    compiler_path: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing bundle previews."""

    app = FastAPI(title="bundleweave", version=__version__)

    async def get_orchestrator() -> Orchestrator:
        # One orchestrator per request; every run re-reads the filesystem.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.post("/config", response_model=ConfigResponse)
    async def preview_config(
        payload: ConfigRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ConfigResponse:
        def _run() -> ConfigOutcome:
            return orchestrator.run_config(payload.path, payload.extra_paths, dry_run=True)

        outcome = await asyncio.get_running_loop().run_in_executor(None, _run)
        extra = outcome.document.extra_fields
        return ConfigResponse(
            bundles=[
                BundleModel(
                    name=bundle.name,
                    components=list(bundle.components),
                    templates=list(bundle.templates),
                )
                for bundle in outcome.document.bundles
            ],
            extra_paths=extra.get("extra_paths"),
            compiler_path=extra.get("compiler_path"),
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    @app.exception_handler(SerializationError)
    @app.exception_handler(CompileError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)
