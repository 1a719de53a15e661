import asyncio
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from candidate_matching.api.dependencies import get_db_session, get_matching_llm
from candidate_matching.errors import not_found
from candidate_matching.llm import MatchingLLM
from candidate_matching.matching import (
    analyze_single_candidate,
    get_job,
    get_match_details,
    get_match_session,
    get_match_sessions_for_job,
    run_match_step1,
    run_match_step2,
)
from candidate_matching.resources import llm_mode
from candidate_matching.schemas.matching import (
    CandidateMatch,
    MappedAnalysisResult,
    MatchSessionList,
    MatchSessionOut,
    MatchStep1Response,
    MatchStep2Request,
    MatchStep2Response,
)

router = APIRouter()


def _profile_uuid(profile_id: str) -> UUID:
    try:
        return UUID(profile_id)
    except ValueError:
        raise not_found("Profile", profile_id) from None


@router.get("/health")
def health():
    return {"status": "ok", "llm_mode": llm_mode()}


@router.post("/jobs/{job_id}/match/step1", response_model=MatchStep1Response)
def match_step1(job_id: str, session: Session = Depends(get_db_session)):
    return run_match_step1(session, job_id)


@router.post("/jobs/{job_id}/match/step2", response_model=MatchStep2Response)
async def match_step2(
    job_id: str,
    body: MatchStep2Request,
    session: Session = Depends(get_db_session),
    llm: MatchingLLM = Depends(get_matching_llm),
):
    return await run_match_step2(session, llm, job_id, body.profile_ids, body.session_id)


@router.get("/jobs/{job_id}/match-sessions", response_model=MatchSessionList)
def list_match_sessions(job_id: str, session: Session = Depends(get_db_session)):
    sessions = get_match_sessions_for_job(session, job_id)
    return MatchSessionList(
        sessions=[MatchSessionOut.model_validate(s) for s in sessions],
        total=len(sessions),
    )


@router.get("/match-sessions/{session_id}", response_model=MatchSessionOut)
def read_match_session(session_id: str, session: Session = Depends(get_db_session)):
    return MatchSessionOut.model_validate(get_match_session(session, session_id))


@router.get("/jobs/{job_id}/match/candidates/{profile_id}", response_model=CandidateMatch)
def candidate_match_details(job_id: str, profile_id: str, session: Session = Depends(get_db_session)):
    job = get_job(session, job_id)
    match = get_match_details(session, job.id, _profile_uuid(profile_id))
    if match is None:
        raise not_found("Candidate match", profile_id)
    return match


@router.post(
    "/jobs/{job_id}/match/candidates/{profile_id}/analyze",
    response_model=MappedAnalysisResult,
)
async def analyze_candidate_for_job(
    job_id: str,
    profile_id: str,
    session: Session = Depends(get_db_session),
    llm: MatchingLLM = Depends(get_matching_llm),
):
    job = await asyncio.to_thread(get_job, session, job_id)
    result = await analyze_single_candidate(session, llm, job.id, str(_profile_uuid(profile_id)))
    return MappedAnalysisResult.from_result(result)
