"""FastAPI application entry point"""

import os
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables
load_dotenv()

from api_server.middleware import setup_cors, setup_rate_limit, setup_logging, LoggingMiddleware
from api_server.routes import health_router, board_router, profiles_router
from debate_core import BoardService, SQLiteProfileStore
from debate_core.config import (
    LLM_MAX_TOKENS,
    LLM_MODEL,
    LLM_TEMPERATURE,
    PROFILE_DB_PATH,
)
from llm_client import GroqClient

# Setup logging
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the generation client and profile store once per process"""
    store = SQLiteProfileStore(PROFILE_DB_PATH)
    await store.connect()

    client = GroqClient(
        model=LLM_MODEL,
        temperature=LLM_TEMPERATURE,
        max_tokens=LLM_MAX_TOKENS,
    )
    if not client.has_valid_credential:
        logger.warning('"GROQ_API_KEY is missing or malformed; generation requests will fail"')

    app.state.store = store
    app.state.board = BoardService(client, store=store)
    try:
        yield
    finally:
        await store.close()


# Create FastAPI app
app = FastAPI(
    title="Debate Board API",
    description="Persona-driven agent debates streamed under bounded latency",
    version="0.1.0",
    lifespan=lifespan,
)

# Setup middleware
setup_cors(app)
setup_rate_limit(app)
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(health_router)
app.include_router(board_router)
app.include_router(profiles_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Debate Board API",
        "docs": "/docs",
        "health": "/health",
        "board": "/api/board",
    }


def run() -> None:
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(
        "api_server.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )


if __name__ == "__main__":
    run()
