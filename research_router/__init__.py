"""Hybrid retrieval and ranking orchestrator for agentic research turns."""

from loguru import logger

ROUTER_VERSION = "1.0.0"
ROUTER_BUILD_ID = "RR-HYBRID-RAG-ROUTER-20260124A"

# Silent unless an application calls services.logger.configure_logging().
logger.disable("research_router")

from research_router.agents.orchestrator import research_turn  # noqa: E402
from research_router.config import DEFAULT_CONFIG, RouterConfig  # noqa: E402
from research_router.services.retrieval import RetrievalBackendError  # noqa: E402

__all__ = [
    "DEFAULT_CONFIG",
    "ROUTER_BUILD_ID",
    "ROUTER_VERSION",
    "RetrievalBackendError",
    "RouterConfig",
    "research_turn",
]
