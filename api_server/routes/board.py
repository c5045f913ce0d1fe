"""Board action endpoint"""

import json
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator

from debate_core import BoardRequest, BoardService, SelfMatchError
from llm_client import ConfigError
from api_server.dependencies import get_board_service
from api_server.middleware import limiter, get_rate_limit_string

logger = logging.getLogger("api_server")

router = APIRouter(prefix="/api", tags=["board"])

STREAM_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class BoardActionRequest(BaseModel):
    """Request body for every board action

    Field names are accepted in snake_case or in the browser's camelCase.
    """
    model_config = ConfigDict(populate_by_name=True)

    action: Literal["MATCH", "AUDITION", "BETTING"]
    user_context: str = Field(default="", max_length=2000, alias="userContext")
    agent_id: str = Field(default="", max_length=200, alias="agentId")
    type: Optional[Literal["critique", "deep_dive", "synthesis"]] = None
    round: Optional[Literal[1, 2]] = None
    target_content: Optional[str] = Field(default=None, max_length=4000, alias="targetContent")
    target_agent_name: Optional[str] = Field(default=None, max_length=100, alias="targetAgentName")
    agent_a: str = Field(default="", max_length=200, alias="agentA")
    agent_b: str = Field(default="", max_length=200, alias="agentB")
    agent_ids: Optional[list[str]] = Field(default=None, max_length=3, alias="agentIds")

    @model_validator(mode="after")
    def check_targets(self) -> "BoardActionRequest":
        if self.action == "AUDITION":
            if self.round is None:
                raise ValueError("AUDITION requires round")
            if not self.agent_id:
                raise ValueError("AUDITION requires agent_id")
        elif self.action == "BETTING":
            if self.agent_ids is not None:
                if not all(self.agent_ids):
                    raise ValueError("agent_ids must not contain empty ids")
            elif self.type == "synthesis":
                if not (self.agent_a and self.agent_b):
                    raise ValueError("synthesis requires agent_a and agent_b")
            elif not self.agent_id:
                raise ValueError("BETTING requires agent_id")
        return self

    def to_board_request(self) -> BoardRequest:
        return BoardRequest(**self.model_dump())


@router.post("/board")
@limiter.limit(get_rate_limit_string())
async def board_action(
    request: Request,
    body: BoardActionRequest,
    sm_user_id: Optional[str] = Cookie(None),
    board: BoardService = Depends(get_board_service),
):
    """Run one board action

    MATCH and batch BETTING answer with JSON. Single-target AUDITION and
    BETTING (including synthesis) answer with a chunked text stream that
    ends either in plain text or in a ``{"error": "timeout"}`` envelope.
    """
    try:
        if body.action == "MATCH":
            agents = await board.match(sm_user_id)
            return {"agents": [agent.to_dict() for agent in agents]}

        board_request = body.to_board_request()
        if body.action == "BETTING" and body.agent_ids is not None:
            return {"responses": await board.betting_batch(board_request)}

        if body.action == "BETTING" and body.type == "synthesis":
            run = await board.stream_synthesis(board_request)
        else:
            run = await board.stream_turn(board_request)
    except (ConfigError, SelfMatchError) as e:
        logger.error(json.dumps({"action": body.action, "error": type(e).__name__, "detail": str(e)}))
        raise HTTPException(status_code=500, detail="Internal Error")

    return StreamingResponse(
        run,
        media_type="text/event-stream; charset=utf-8",
        headers=STREAM_HEADERS,
    )
