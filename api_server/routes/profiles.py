"""Profile registration and wealth leaderboard"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from debate_core import ProfileStore, UserRecord
from debate_core.config import LEADERBOARD_SIZE
from debate_core.store import fire_and_forget
from debate_core.types import parse_fragments
from api_server.dependencies import get_profile_store
from api_server.middleware import limiter, get_rate_limit_string

logger = logging.getLogger("api_server")

router = APIRouter(tags=["profiles"])


class ProfileInput(BaseModel):
    """Identity-exchange result to persist"""
    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    avatar: str = Field(default="", max_length=500)
    shades: list[Any] = Field(default_factory=list)


@router.post("/profiles", status_code=202)
@limiter.limit(get_rate_limit_string())
async def register_profile(
    request: Request,
    body: ProfileInput,
    store: ProfileStore = Depends(get_profile_store),
):
    """Upsert a profile and open its wallet

    Storage problems are logged only; the caller always gets 202.
    """
    record = UserRecord(
        id=body.id,
        name=body.name,
        avatar=body.avatar,
        shades=parse_fragments(body.shades),
        last_seen=datetime.now(timezone.utc),
    )
    try:
        await store.upsert_user(record)
    except Exception as e:  # noqa: BLE001
        logger.error(json.dumps({"profile": body.id, "error": "upsert_failed", "detail": str(e)}))
        return {"id": body.id, "stored": False}

    fire_and_forget(store.increment_balance(body.id, 0), f"wallet init for {body.id}")
    return {"id": body.id, "stored": True}


@router.get("/leaderboard")
async def leaderboard(store: ProfileStore = Depends(get_profile_store)):
    """Top users by wealth"""
    try:
        records = await store.top_balances(limit=LEADERBOARD_SIZE)
    except Exception as e:  # noqa: BLE001
        logger.error(json.dumps({"error": "leaderboard_failed", "detail": str(e)}))
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return {"data": [{"name": r.name, "wealth": r.wealth} for r in records]}
