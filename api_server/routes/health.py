"""Health check endpoint"""

from datetime import datetime, timezone
from fastapi import APIRouter, Request

router = APIRouter()

VERSION = "0.1.0"


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint

    Returns:
        Status, timestamp, version and whether a generation key is set
    """
    board = getattr(request.app.state, "board", None)
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "version": VERSION,
        "llm_configured": bool(board and board.client.has_valid_credential),
    }
