# main.py
"""
FastAPI entry point for the nutrition coach plan service.

Startup/readiness checks against Supabase, request-id middleware with request
logging, typed service errors rendered as {"ok": false, "status", "error"}, and
graceful shutdown of the Supabase client (if it supports close/shutdown).
"""
import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.ai import router as ai_router
from app.api.auth import router as auth_router
from app.api.clients import router as clients_router
from app.api.documents import router as documents_router
from app.api.export import router as export_router
from app.api.fdc import router as fdc_router
from app.api.foods import router as foods_router
from app.api.nutrition import router as nutrition_router
from app.api.share import router as share_router
from app.config.database import get_client_diagnostics
from app.config.supabase import supabase_client
from app.services.errors import NutritionPlanError

logger = logging.getLogger("uvicorn.error")

# config
HEALTH_CHECK_TIMEOUT = float(os.getenv("HEALTH_CHECK_TIMEOUT", "5.0"))
FAIL_ON_DB_STARTUP = os.getenv("FAIL_ON_DB_STARTUP", "false").lower() in ("1", "true", "yes")


async def _run_sync_in_executor(fn, *args, timeout: float = HEALTH_CHECK_TIMEOUT):
    """
    Run a blocking function in the default threadpool with a timeout.
    Returns the function's result or raises TimeoutError.
    """
    loop = asyncio.get_running_loop()
    return await asyncio.wait_for(loop.run_in_executor(None, fn, *args), timeout=timeout)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting nutrition plan service...")

    supabase_healthy = False
    try:
        try:
            supabase_healthy = await _run_sync_in_executor(supabase_client.health_check)
        except asyncio.TimeoutError:
            logger.warning("Supabase health_check timed out after %.1fs", HEALTH_CHECK_TIMEOUT)
            supabase_healthy = False
        except Exception as exc:
            logger.exception("Unexpected error calling supabase_client.health_check: %s", exc)
            supabase_healthy = False

        app.state.supabase_healthy = bool(supabase_healthy)
        logger.info("Supabase health: %s", app.state.supabase_healthy)

        if not app.state.supabase_healthy and FAIL_ON_DB_STARTUP:
            logger.error("FAIL_ON_DB_STARTUP enabled and Supabase unhealthy. Aborting startup.")
            raise RuntimeError("Supabase unhealthy on startup")
    except Exception:
        logger.exception("Critical startup error")
        raise

    try:
        yield
    finally:
        logger.info("Shutting down nutrition plan service...")
        try:
            close_fn = getattr(supabase_client, "close", None) or getattr(supabase_client, "shutdown", None)
            if callable(close_fn):
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, close_fn)
                logger.info("Supabase client closed gracefully")
        except Exception:
            logger.exception("Error while closing supabase client during shutdown")


app = FastAPI(
    title="Nutrition Coach Plans",
    description="Colour-coded nutrition plans with public share links and client progress tracking",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # you can lock this down in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.request_id = request_id
    logger.info("→ Incoming request %s %s id=%s", request.method, request.url.path, request_id)
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        logger.exception("Handler error for request id=%s: %s", request_id, exc)
        # never echo exception text to callers
        response = JSONResponse(
            {"ok": False, "status": 500, "error": "Internal server error"}, status_code=500
        )
    logger.info("← Completed request id=%s status=%s", request_id, getattr(response, "status_code", None))
    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(NutritionPlanError)
async def handle_service_error(request: Request, exc: NutritionPlanError):
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s context=%s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
            exc.context,
        )
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid {field}" if field else "Invalid request"
    logger.info("Request validation failed on %s: %s", request.url.path, errors[:3])
    return JSONResponse({"ok": False, "status": 400, "error": message}, status_code=400)


app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(clients_router, prefix="/api/clients", tags=["clients"])
app.include_router(foods_router, prefix="/api/foods", tags=["foods"])
app.include_router(documents_router, prefix="/api/documents", tags=["documents"])
app.include_router(share_router, prefix="/api/share", tags=["share"])
app.include_router(fdc_router, prefix="/api/fdc", tags=["fdc"])
app.include_router(nutrition_router, prefix="/api/nutrition", tags=["nutrition"])
app.include_router(ai_router, prefix="/api/ai", tags=["ai"])
app.include_router(export_router, prefix="/api/export", tags=["export"])


@app.get("/")
async def root() -> Dict[str, str]:
    return {"message": "Nutrition coach plan service is running!", "status": "healthy"}


@app.head("/api")
async def api_head():
    return Response(status_code=200)


@app.get("/health")
async def health_check():
    """
    Liveness: is the process up? Runs a bounded Supabase check and reports
    degraded (503) rather than failing when the database is down.
    """
    try:
        try:
            db_ok = await _run_sync_in_executor(supabase_client.health_check)
        except asyncio.TimeoutError:
            logger.warning("Supabase health_check timed out on /health")
            db_ok = False
        except Exception as exc:
            logger.exception("Error invoking supabase health on /health: %s", exc)
            db_ok = False

        return JSONResponse(
            {
                "status": "healthy" if db_ok else "degraded",
                "service": "nutrition-plans",
                "database": "connected" if db_ok else "disconnected",
                "diagnostics": get_client_diagnostics(),
            },
            status_code=200 if db_ok else 503,
        )
    except Exception as exc:
        logger.exception("Error during /health: %s", exc)
        return JSONResponse({"status": "error", "service": "nutrition-plans"}, status_code=500)


@app.get("/ready")
async def readiness_check():
    """
    Readiness: uses the state cached at startup when available, otherwise a
    one-shot bounded check.
    """
    supabase_state: Optional[bool] = getattr(app.state, "supabase_healthy", None)
    if supabase_state is None:
        try:
            supabase_state = await _run_sync_in_executor(supabase_client.health_check, timeout=2.0)
        except Exception:
            supabase_state = False

    if supabase_state:
        return JSONResponse({"ready": True, "database": "connected"}, status_code=200)
    return JSONResponse({"ready": False, "database": "disconnected"}, status_code=503)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", 5000)), reload=True)
