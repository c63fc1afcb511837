from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from research_router import ROUTER_BUILD_ID, ROUTER_VERSION
from research_router.api.routes import research
from research_router.config import settings
from research_router.services.logger import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    title="Research Router",
    description="Hybrid retrieval and ranking for agentic research turns",
    version=ROUTER_VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(research.router)


@app.get("/api/health")
async def health():
    return {
        "status": "ok",
        "service": "research-router",
        "version": ROUTER_VERSION,
        "build": ROUTER_BUILD_ID,
    }
