import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import detection, providers
from cache.store import CacheStore
from config import get_settings
from detection.detector import ComposableDetector, build_default_detector
from llm.cached_gateway import BudgetUnavailableError, QuotaExceededError
from llm.client import AIStack, build_ai_stack
from llm.selector import AllProvidersFailedError

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    detector: ComposableDetector | None = None,
    ai_stack: AIStack | None = None,
) -> FastAPI:
    """Build the API. A prebuilt *detector* (and optional *ai_stack*) skips
    the settings-driven wiring at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting PII classifier API")
        store: CacheStore | None = None

        if detector is not None:
            app.state.detector = detector
            app.state.ai_stack = ai_stack
        elif settings.ai_enabled:
            store = CacheStore.from_url(settings.redis_url)
            if not await store.ping():
                logger.warning(
                    "Redis at %s is unreachable; AI cache and budgets run fail-%s",
                    settings.redis_url, settings.ai_budget_fail_mode,
                )
            app.state.ai_stack = build_ai_stack(settings, store)
            app.state.detector = build_default_detector(
                app.state.ai_stack.gateway, ai_weight=settings.ai_strategy_weight,
            )
        else:
            logger.info("AI gateway disabled, running rule-based strategies only")
            app.state.ai_stack = None
            app.state.detector = build_default_detector(None)

        yield

        if store is not None:
            await store.close()
        logger.info("Shutting down PII classifier API")

    app = FastAPI(
        title="PII Column Classifier",
        description="Multi-strategy PII detection with a multi-provider AI gateway",
        version="0.1.0",
        lifespan=lifespan,
    )

    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With", "X-Tenant-ID"],
    )

    @app.exception_handler(QuotaExceededError)
    async def quota_exceeded(request: Request, exc: QuotaExceededError):
        status = 503 if isinstance(exc, BudgetUnavailableError) else 429
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    @app.exception_handler(AllProvidersFailedError)
    async def providers_failed(request: Request, exc: AllProvidersFailedError):
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    app.include_router(detection.router, prefix="/api", tags=["detection"])
    app.include_router(providers.router, prefix="/api/providers", tags=["providers"])

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
