"""Shared dependencies for API routes."""

from collections.abc import Iterator
from functools import lru_cache

from sqlalchemy.orm import Session

from candidate_matching.db import get_session
from candidate_matching.llm import MatchingLLM
from candidate_matching.resources import build_matching_llm


def get_db_session() -> Iterator[Session]:
    session = get_session()
    try:
        yield session
    finally:
        session.close()


@lru_cache
def get_matching_llm() -> MatchingLLM:
    return build_matching_llm(scope="match_api")
