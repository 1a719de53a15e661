"""Step-2 matching: completion-service analysis of selected candidates."""

import asyncio
import logging
import time
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from candidate_matching.errors import not_found
from candidate_matching.llm import MatchingLLM
from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.jobs import Job
from candidate_matching.schemas.cards import load_resume_card
from candidate_matching.schemas.matching import AIMatchResult

logger = logging.getLogger(__name__)

# Concurrent analyses per batch; batches run one after another.
ANALYSIS_BATCH_SIZE = 5

UNKNOWN_CANDIDATE = "Unknown Candidate"


def profile_name(profile: CandidateProfile) -> str:
    name = load_resume_card(profile.resume_card).personal_info.name
    return name.strip() if name and name.strip() else UNKNOWN_CANDIDATE


def canonical_profile_ids(profile_ids: Sequence[str]) -> list[str]:
    """Requested ids in canonical UUID form, first occurrence kept.

    Spellings of the same UUID collapse to one entry; malformed ids are skipped.
    """
    canonical: dict[str, None] = {}
    for raw in profile_ids:
        try:
            canonical[str(UUID(str(raw)))] = None
        except ValueError:
            logger.warning(f"Skipping malformed profile id {raw!r}")
    return list(canonical)


def _load_profiles(session: Session, profile_ids: Sequence[str]) -> list[CandidateProfile]:
    """Profiles in request order; ids without a record are skipped."""
    ids = [UUID(pid) for pid in canonical_profile_ids(profile_ids)]
    if not ids:
        return []
    found = {
        p.id: p
        for p in session.execute(
            select(CandidateProfile).where(CandidateProfile.id.in_(ids))
        ).scalars()
    }
    missing = [str(pid) for pid in ids if pid not in found]
    if missing:
        logger.warning(f"Skipping {len(missing)} unknown profiles: {missing}")
    return [found[pid] for pid in ids if pid in found]


async def _analyze(llm: MatchingLLM, job: Job, profile: CandidateProfile) -> AIMatchResult:
    name = profile_name(profile)
    try:
        analysis = await llm.analyze_candidate(job, profile)
    except Exception as e:
        logger.error(f"Analysis failed for profile {profile.id}: {e}")
        return AIMatchResult.failed(str(profile.id), name)
    return AIMatchResult(
        profile_id=str(profile.id),
        profile_name=name,
        ai_score=analysis.match_score,
        explanation=analysis.explanation,
        evidence=analysis.evidence,
        concerns=analysis.concerns,
        strengths=analysis.strengths,
        confidence=analysis.confidence,
    )


async def analyze_multiple_candidates(
    session: Session,
    llm: MatchingLLM,
    job_id: UUID,
    profile_ids: Sequence[str],
    batch_size: int = ANALYSIS_BATCH_SIZE,
) -> list[AIMatchResult]:
    """Analyze the given candidates against a job, best score first.

    One result per distinct existing profile. A failed analysis yields the
    failure placeholder (score 0) rather than an exception.

    Raises:
        NotFoundError: the job does not exist
    """
    job = await asyncio.to_thread(session.get, Job, job_id)
    if job is None:
        raise not_found("Job", str(job_id))

    profiles = await asyncio.to_thread(_load_profiles, session, profile_ids)
    started = time.monotonic()
    results: list[AIMatchResult] = []
    for i in range(0, len(profiles), batch_size):
        batch = profiles[i : i + batch_size]
        results.extend(await asyncio.gather(*(_analyze(llm, job, p) for p in batch)))
        logger.info(
            f"Analyzed batch {i // batch_size + 1}: {len(results)}/{len(profiles)} candidates"
        )

    results.sort(key=lambda r: r.ai_score, reverse=True)
    logger.info(
        f"Step-2 analysis of {len(results)} candidates for job {job_id} "
        f"took {time.monotonic() - started:.2f}s"
    )
    return results


async def analyze_single_candidate(
    session: Session, llm: MatchingLLM, job_id: UUID, profile_id: str
) -> AIMatchResult:
    """Analysis for one candidate.

    Raises:
        NotFoundError: the job or the profile does not exist
    """
    results = await analyze_multiple_candidates(session, llm, job_id, [profile_id])
    if not results:
        raise not_found("Profile", str(profile_id))
    return results[0]
