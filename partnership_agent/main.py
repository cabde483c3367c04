import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from partnership_agent.api.admin import router as admin_router
from partnership_agent.api.chat import router as chat_router
from partnership_agent.api.dependencies import (
    get_document_search,
    get_evaluation_queue,
    get_orchestrator,
)
from partnership_agent.api.health import router as health_router
from partnership_agent.core.config import settings
from partnership_agent.services.search import init_chromadb, seed_sample_documents
from partnership_agent.sqlite.database import engine, init_db
from partnership_agent.utils.logging import get_logger, setup_logging

setup_logging(logging.INFO if settings.environment == "development" else logging.WARNING)
logger = get_logger("partnership_agent.main")

app = FastAPI(
    title=settings.app_name,
    description="Grounded question answering over partnership agreements",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router, prefix="/api")    # /api/chat, /api/chat/stream
app.include_router(admin_router, prefix="/api")   # /api/admin/...
app.include_router(health_router, prefix="/api")  # /api/health


@app.on_event("startup")
async def on_startup():
    """
    1. Initialize the database and create tables
    2. Initialize ChromaDB and seed sample documents into an empty index
    3. Start the evaluation worker
    4. Build the pipeline (fails fast on an incomplete transition table)
    """
    logger.info("Starting %s...", settings.app_name)

    if not init_db():
        raise RuntimeError("Database initialization failed")

    if not init_chromadb():
        logger.warning("ChromaDB initialization failed - document search may not work")
    elif settings.seed_sample_documents:
        try:
            seeded = seed_sample_documents(get_document_search())
            if seeded:
                logger.info("[OK] Seeded %d sample documents", seeded)
        except Exception as e:
            logger.warning("Sample document seeding failed: %s", e)

    evaluation = get_evaluation_queue()
    if evaluation is not None:
        evaluation.start()

    get_orchestrator()
    logger.info("[OK] %s started", settings.app_name)


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("Shutting down %s...", settings.app_name)
    evaluation = get_evaluation_queue()
    if evaluation is not None:
        await evaluation.stop()
    engine.dispose()
    logger.info("[OK] Shutdown complete")
