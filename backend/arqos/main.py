import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arqos import __version__
from arqos.config import settings
from arqos.database import engine, init_db
from arqos.middleware.exceptions import register_exception_handlers
from arqos.onboarding.snapshot import close_redis
from arqos.routers import health, onboarding, wizard

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("arqos")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("ArqOS backend started (%s)", settings.environment)
    yield
    await close_redis()
    await engine.dispose()
    logger.info("ArqOS backend stopped")


app = FastAPI(
    title="ArqOS",
    description="Studio management: onboarding and organization setup",
    version=__version__,
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(onboarding.router, prefix="/api/onboarding", tags=["onboarding"])
app.include_router(wizard.router, prefix="/api/wizard", tags=["wizard"])
