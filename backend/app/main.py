"""Role-play training backend: FastAPI Application Entry Point."""

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.agents.theory_assessor import TheoryAssessor
from app.config import settings
from app.database import engine, Base
from app.middleware.rate_limit import limiter
from app.routers import (
    assessment,
    assignments,
    auth,
    company_settings,
    knowledge,
    questions,
    scenarios,
    training,
    voice,
    webhooks,
)
from app.services.ai_client import ai_provider_name, ai_health_check
from app.services.storage import RecordingStorage
from app.services.voice_client import VoiceClient

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create all tables on startup
Base.metadata.create_all(bind=engine)

# ── CORS origins from env (supports dev localhost + production domain) ──────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="Role-Play Training API",
    description="Voice role-play training sessions, recordings and assessments.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error envelope: every failure is {"success": false, "error": ...} ───────

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        body = {"success": False, **exc.detail}
    else:
        body = {"success": False, "error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request", "details": jsonable_errors(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]


# Routers
app.include_router(auth.router)
app.include_router(training.router)
app.include_router(assessment.router)
app.include_router(voice.router)
app.include_router(webhooks.router)
app.include_router(scenarios.router)
app.include_router(assignments.router)
app.include_router(questions.router)
app.include_router(knowledge.router)
app.include_router(company_settings.router)

# Stored recordings are served from the same origin as the API
Path(settings.STORAGE_ROOT).mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=settings.STORAGE_ROOT), name="storage")


@app.on_event("startup")
async def on_startup():
    """Build the shared integration clients and log the AI provider."""
    app.state.voice_client = VoiceClient(
        api_key=settings.ELEVENLABS_API_KEY,
        base_url=settings.ELEVENLABS_BASE_URL,
        tts_voice_id=settings.ELEVENLABS_TTS_VOICE_ID,
        tts_model=settings.ELEVENLABS_TTS_MODEL,
    )
    app.state.storage = RecordingStorage(
        root=settings.STORAGE_ROOT,
        public_url=settings.STORAGE_PUBLIC_URL,
        bucket=settings.RECORDINGS_BUCKET,
    )
    app.state.scorer = TheoryAssessor()

    if not app.state.voice_client.configured:
        logger.warning("ELEVENLABS_API_KEY is not set; voice endpoints will fail")

    provider = ai_provider_name()
    if provider == "none":
        logger.warning("AI not configured; theory scoring and question generation are unavailable")
    else:
        logger.info("AI provider: %s", provider)


@app.on_event("shutdown")
async def on_shutdown():
    await app.state.voice_client.aclose()


@app.get("/")
def root():
    return {
        "name": "Role-Play Training API",
        "version": "1.0.0",
        "docs": "/docs",
        "ai_provider": ai_provider_name(),
    }


@app.get("/health")
def health():
    return {"status": "ok", "ai_provider": ai_provider_name()}


@app.get("/api/health/ai")
async def health_ai():
    """Live connectivity test for the configured AI provider.

    Returns:
        provider: which AI is active
        status:   "ok" | "error" | "unconfigured"
        test_reply / error: result of a tiny test call
    """
    return await ai_health_check()
