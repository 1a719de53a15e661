"""Match session flows: Step-1 and Step-2 runs persisted on a MatchSession.

State machine per job:

    (no row) --Step-1--> step1_complete --Step-2--> completed
    (no row) --Step-2 without sessionId--> completed   (ad-hoc analysis)

Repeated Step-1 runs reuse the job's live session (`live_key == job_id`).
Every write is checked against the session's `version`; a write based on a
stale read raises ConflictError and leaves the row as the other writer left it.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from candidate_matching.db import dialect_insert
from candidate_matching.errors import bad_request, conflict, forbidden, not_found
from candidate_matching.llm import MatchingLLM
from candidate_matching.matching.step1 import find_matching_candidates
from candidate_matching.matching.step2 import analyze_multiple_candidates, canonical_profile_ids
from candidate_matching.models.enums import MatchSessionStatusEnum
from candidate_matching.models.jobs import Job
from candidate_matching.models.matches import MatchSession
from candidate_matching.schemas.matching import (
    AIMatchResult,
    MappedAnalysisResult,
    MatchStep1Response,
    MatchStep2Response,
)

logger = logging.getLogger(__name__)


def _parse_uuid(value: UUID | str, resource: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise not_found(resource, str(value)) from None


def get_job(session: Session, job_id: UUID | str) -> Job:
    """Load a job by id.

    Raises:
        NotFoundError: no such job, or a malformed id
    """
    job = session.get(Job, _parse_uuid(job_id, "Job"))
    if job is None:
        raise not_found("Job", str(job_id))
    return job


def get_match_session(session: Session, session_id: UUID | str) -> MatchSession:
    """Load a session by id.

    Raises:
        NotFoundError: no such session
    """
    match_session = session.get(MatchSession, _parse_uuid(session_id, "Match session"))
    if match_session is None:
        raise not_found("Match session", str(session_id))
    return match_session


def get_match_sessions_for_job(session: Session, job_id: UUID | str) -> list[MatchSession]:
    """All sessions of a job, oldest first.

    Raises:
        NotFoundError: no such job
    """
    job = get_job(session, job_id)
    return list(
        session.execute(
            select(MatchSession)
            .where(MatchSession.job_id == job.id)
            .order_by(MatchSession.created_at, MatchSession.id)
        ).scalars()
    )


def _find_live_session(session: Session, job_id: UUID) -> MatchSession | None:
    return session.execute(
        select(MatchSession).where(MatchSession.live_key == job_id)
    ).scalar_one_or_none()


def _claim_live_session(session: Session, job: Job) -> MatchSession:
    """Return the job's reusable session, creating or claiming it if needed."""
    live = _find_live_session(session, job.id)
    if live is not None:
        return live

    oldest = session.execute(
        select(MatchSession)
        .where(MatchSession.job_id == job.id)
        .order_by(MatchSession.created_at, MatchSession.id)
        .limit(1)
    ).scalar_one_or_none()
    if oldest is not None:
        oldest.live_key = job.id
        try:
            session.flush()
        except IntegrityError:
            # another Step-1 claimed a session first
            session.rollback()
            return _find_live_session(session, job.id)
        return oldest

    stmt = dialect_insert(session, MatchSession).values(
        id=uuid4(),
        job_id=job.id,
        live_key=job.id,
        status=MatchSessionStatusEnum.STEP1_PENDING,
        version=1,
    )
    session.execute(stmt.on_conflict_do_nothing(index_elements=["live_key"]))
    return _find_live_session(session, job.id)


def _commit(session: Session, session_id: UUID) -> None:
    try:
        session.commit()
    except StaleDataError:
        session.rollback()
        logger.warning(f"Rejected stale write to match session {session_id}")
        raise conflict(
            "Match session was modified by another request; retry",
            {"sessionId": str(session_id)},
        ) from None


def run_match_step1(session: Session, job_id: UUID | str) -> MatchStep1Response:
    """Score all candidates for a job and store the ranking on its live session.

    Raises:
        NotFoundError: no such job
        ConflictError: the session changed underneath this run
    """
    started = time.monotonic()
    job = get_job(session, job_id)
    logger.info(f"Step-1 matching for job {job.id}")

    matches = find_matching_candidates(session, job.id)

    try:
        match_session = _claim_live_session(session, job)
        session_id = match_session.id
        match_session.step1_results = [m.model_dump(mode="json") for m in matches]
        match_session.status = MatchSessionStatusEnum.STEP1_COMPLETE
        _commit(session, session_id)
    except StaleDataError:
        session.rollback()
        raise conflict("Match session was modified by another request; retry") from None

    logger.info(
        f"Step-1 complete for job {job.id}: {len(matches)} matches, session {session_id}, "
        f"{time.monotonic() - started:.2f}s"
    )
    return MatchStep1Response(
        session_id=str(session_id),
        matches=matches,
        total_matches=len(matches),
    )


def _validate_selection(match_session: MatchSession, profile_ids: list[str]) -> list[str]:
    """Restrict requested ids to the session's Step-1 candidates, when Step-1 ran."""
    step1_ids = match_session.step1_profile_ids()
    if step1_ids is None:
        return profile_ids

    allowed = set(step1_ids)
    validated = [pid for pid in profile_ids if pid in allowed]
    dropped = [pid for pid in profile_ids if pid not in allowed]
    if dropped:
        logger.warning(
            f"Session {match_session.id}: dropping {len(dropped)} profiles "
            f"not in Step-1 results: {dropped}"
        )
    if not validated:
        raise bad_request(
            "None of the requested profiles were returned by Step-1 for this session",
            {"sessionId": str(match_session.id), "profileIds": profile_ids},
        )
    return validated


def _prepare_step2(
    session: Session,
    job_id: UUID | str,
    requested: list[str],
    session_id: UUID | str | None,
) -> tuple[Job, MatchSession | None, list[str]]:
    job = get_job(session, job_id)
    if session_id is None:
        return job, None, requested

    match_session = get_match_session(session, session_id)
    if match_session.job_id != job.id:
        raise forbidden("Match session does not belong to this job")
    return job, match_session, _validate_selection(match_session, requested)


def _store_step2(
    session: Session,
    job: Job,
    match_session: MatchSession | None,
    requested: list[str],
    results: list[AIMatchResult],
) -> UUID:
    if match_session is None:
        match_session = MatchSession(id=uuid4(), job_id=job.id, live_key=None)
        session.add(match_session)
    match_session.step2_selections = requested
    match_session.step2_results = [r.model_dump(mode="json") for r in results]
    match_session.status = MatchSessionStatusEnum.COMPLETED
    stored_id = match_session.id
    _commit(session, stored_id)
    return stored_id


async def run_match_step2(
    session: Session,
    llm: MatchingLLM,
    job_id: UUID | str,
    profile_ids: Sequence[str],
    session_id: UUID | str | None = None,
) -> MatchStep2Response:
    """Deep-analyze selected candidates and complete the session.

    Requested ids are compared in canonical UUID form, so case variants of one
    id count once. Without `session_id` a new ad-hoc session is created
    directly in the completed state. Database reads and the final write run on
    a worker thread.

    Raises:
        BadRequestError: empty selection, or nothing left after Step-1 filtering
        NotFoundError: no such job or session
        ForbiddenError: the session belongs to another job
        ConflictError: the session changed during analysis
    """
    if not profile_ids:
        raise bad_request("profileIds must be a non-empty array")
    requested = canonical_profile_ids(profile_ids)

    started = time.monotonic()
    job, match_session, requested = await asyncio.to_thread(
        _prepare_step2, session, job_id, requested, session_id
    )

    logger.info(f"Step-2 analysis for job {job.id}: {len(requested)} candidates")
    results = await analyze_multiple_candidates(session, llm, job.id, requested)
    stored_id = await asyncio.to_thread(_store_step2, session, job, match_session, requested, results)

    logger.info(
        f"Step-2 complete for job {job.id}: {len(results)} analyzed, session {stored_id}, "
        f"{time.monotonic() - started:.2f}s"
    )
    return MatchStep2Response(
        session_id=str(stored_id),
        results=[MappedAnalysisResult.from_result(r) for r in results],
        total_analyzed=len(results),
    )
