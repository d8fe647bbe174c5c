"""Fridge Planner HTTP service.

Single entry point for the fridge planning API:
- GET  /api/health            dependency status (cache, model, catalog)
- POST /api/fridge/interpret  free text -> interpreted ingredients + constraints
- POST /api/fridge/run        full pipeline: candidates, cache sync, hits, plan

Run with: python app.py
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.models.models import FridgeRunRequest, InterpretRequest
from src.services.factory import Services, initialize_services
from src.utils.config import config
from src.utils.errors import CacheStoreError, FridgePlannerError, UpstreamError
from src.utils.logger import logger


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, "invalid_argument", f"Request validation failed: {exc.errors()[0]['msg']}")


async def service_error_handler(_request: Request, exc: FridgePlannerError) -> JSONResponse:
    logger.error(f"Request aborted: {type(exc).__name__}: {exc}")
    status = 502 if isinstance(exc, UpstreamError) else 500
    return error_response(status, "upstream_failure" if status == 502 else "interpretation_failed", str(exc))


async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error: {exc}", exc_info=exc)
    return error_response(500, "internal", "Internal server error.")


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        services: Pre-built services (tests inject fakes). Built from config when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.services = services or initialize_services()
        try:
            await app.state.services.cache.ensure_index()
        except CacheStoreError as e:
            # Searches degrade and writes fail loudly until the cache is reachable
            logger.warning(f"Could not ensure cache index (continuing): {e}")
        yield

    app = FastAPI(title="Fridge Planner", version="0.1.0", lifespan=lifespan)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(FridgePlannerError, service_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/api/health")
    async def health(request: Request) -> JSONResponse:
        status, body = await request.app.state.services.health.check()
        return JSONResponse(status_code=int(status), content=body.to_wire())

    @app.post("/api/fridge/interpret")
    async def interpret(payload: InterpretRequest, request: Request) -> JSONResponse:
        interpreted = await request.app.state.services.interpreter.interpret(payload.input)
        return JSONResponse(status_code=200, content=interpreted.to_wire())

    @app.post("/api/fridge/run")
    async def fridge_run(payload: FridgeRunRequest, request: Request) -> JSONResponse:
        result = await request.app.state.services.fridge_run.run(payload.input, payload.max)
        return JSONResponse(status_code=int(result.status), content=result.body.to_wire())

    return app


app = create_app()


if __name__ == "__main__":
    logger.info(f"Starting Fridge Planner on port {config.PORT}")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
