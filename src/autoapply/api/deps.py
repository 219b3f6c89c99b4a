from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from autoapply.core.registry import AgentRegistry
from autoapply.db.session import get_db_session


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_registry(request: Request) -> AgentRegistry:
    return request.app.state.registry
