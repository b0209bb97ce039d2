import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Config
from .routers import coach
from .services.agents import get_orchestrator

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    orchestrator = get_orchestrator()
    logger.info(
        f"[Startup] Coach API starting (analyzer mode: {orchestrator.mode}, "
        f"master conductor: {orchestrator.use_master_conductor})"
    )
    yield
    logger.info("[Shutdown] Coach API shutting down")


app = FastAPI(title="Business Coach API", lifespan=lifespan)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register Routers
app.include_router(coach.router)


@app.get("/")
def read_root():
    return {"status": "API is running"}
