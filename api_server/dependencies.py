"""Shared collaborators, built once at startup and read per request"""

from fastapi import Request

from debate_core import BoardService, ProfileStore


def get_board_service(request: Request) -> BoardService:
    return request.app.state.board


def get_profile_store(request: Request) -> ProfileStore:
    return request.app.state.store
