import uvicorn

from partnership_agent.core.config import settings

if __name__ == "__main__":
    # Single worker: chat history (memory backend) and the evaluation
    # queue live in the server process.
    uvicorn.run(
        "partnership_agent.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info" if settings.environment == "development" else "warning",
    )
