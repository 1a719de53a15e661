"""Tests for the match session state machine."""

import asyncio
import threading
from uuid import UUID, uuid4

import pytest
from sqlalchemy import event, func, select

from candidate_matching import db
from candidate_matching.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from candidate_matching.matching.sessions import (
    get_match_session,
    get_match_sessions_for_job,
    run_match_step1,
    run_match_step2,
)
from candidate_matching.models import MatchSession, MatchSessionStatusEnum
from conftest import ScriptedLLM, make_job


def _session_count(session) -> int:
    return session.execute(select(func.count()).select_from(MatchSession)).scalar_one()


def _fresh(session_id) -> MatchSession:
    other = db.get_session()
    try:
        return other.get(MatchSession, session_id)
    finally:
        other.close()


class TestStep1:
    """Tests for Step-1 runs."""

    def test_creates_live_session(self, db_session, seeded_job):
        """Test that the first run stores the ranking on a new session."""
        job, profiles = seeded_job

        response = run_match_step1(db_session, str(job.id))

        assert response.total_matches == 2
        stored = _fresh(UUID(response.session_id))
        assert stored.status == MatchSessionStatusEnum.STEP1_COMPLETE
        assert stored.live_key == job.id
        assert stored.step1_profile_ids() == [str(profiles["a"].id), str(profiles["b"].id)]

    def test_repeated_runs_reuse_session(self, db_session, seeded_job):
        """Test that Step-1 twice for one job leaves one session."""
        job, _ = seeded_job

        first = run_match_step1(db_session, str(job.id))
        second = run_match_step1(db_session, str(job.id))

        assert first.session_id == second.session_id
        assert _session_count(db_session) == 1

    def test_claims_existing_adhoc_session(self, db_session, seeded_job):
        """Test that Step-1 reuses a session created by ad-hoc Step-2."""
        job, profiles = seeded_job
        adhoc = asyncio.run(run_match_step2(db_session, ScriptedLLM(), str(job.id), [str(profiles["a"].id)]))

        response = run_match_step1(db_session, str(job.id))

        assert response.session_id == adhoc.session_id
        assert _session_count(db_session) == 1
        assert _fresh(UUID(response.session_id)).live_key == job.id

    def test_missing_job(self, db_session):
        """Test that unknown and malformed job ids are not-found errors."""
        with pytest.raises(NotFoundError):
            run_match_step1(db_session, str(uuid4()))
        with pytest.raises(NotFoundError):
            run_match_step1(db_session, "not-a-uuid")


class TestStep2:
    """Tests for Step-2 runs."""

    def test_completes_session(self, db_session, seeded_job):
        """Test that Step-2 stores selections and results and completes the session."""
        job, profiles = seeded_job
        a, b = str(profiles["a"].id), str(profiles["b"].id)
        step1 = run_match_step1(db_session, str(job.id))

        response = asyncio.run(
            run_match_step2(db_session, ScriptedLLM(scores={a: 80, b: 95}), str(job.id), [a, b], step1.session_id)
        )

        assert response.session_id == step1.session_id
        assert response.total_analyzed == 2
        assert [r.resume_id for r in response.results] == [b, a]
        stored = _fresh(UUID(step1.session_id))
        assert stored.status == MatchSessionStatusEnum.COMPLETED
        assert stored.step2_selections == [a, b]
        assert [r["ai_score"] for r in stored.step2_results] == [95, 80]

    def test_filters_to_step1_candidates(self, db_session, seeded_job):
        """Test that ids absent from Step-1 are dropped before analysis."""
        job, profiles = seeded_job
        a, c = str(profiles["a"].id), str(profiles["c"].id)
        step1 = run_match_step1(db_session, str(job.id))
        llm = ScriptedLLM()

        response = asyncio.run(run_match_step2(db_session, llm, str(job.id), [a, c], step1.session_id))

        assert [r.resume_id for r in response.results] == [a]
        assert llm.analyze_calls == [a]
        assert _fresh(UUID(step1.session_id)).step2_selections == [a]

    def test_nothing_left_after_filtering(self, db_session, seeded_job):
        """Test that a selection entirely outside Step-1 is rejected."""
        job, profiles = seeded_job
        step1 = run_match_step1(db_session, str(job.id))

        with pytest.raises(BadRequestError):
            asyncio.run(
                run_match_step2(db_session, ScriptedLLM(), str(job.id), [str(profiles["c"].id)], step1.session_id)
            )
        assert _fresh(UUID(step1.session_id)).status == MatchSessionStatusEnum.STEP1_COMPLETE

    def test_session_of_other_job_is_forbidden(self, db_session, seeded_job):
        """Test that a session cannot be used for another job, and is left untouched."""
        job_a, profiles = seeded_job
        job_b = make_job(db_session, technical=["Python"], title="Other")
        step1 = run_match_step1(db_session, str(job_a.id))
        before = _fresh(UUID(step1.session_id))
        llm = ScriptedLLM()

        with pytest.raises(ForbiddenError):
            asyncio.run(
                run_match_step2(db_session, llm, str(job_b.id), [str(profiles["a"].id)], step1.session_id)
            )

        after = _fresh(UUID(step1.session_id))
        assert llm.analyze_calls == []
        assert after.status == MatchSessionStatusEnum.STEP1_COMPLETE
        assert after.step2_selections is None
        assert after.version == before.version

    def test_adhoc_run_creates_completed_session(self, db_session, seeded_job):
        """Test that Step-2 without a session id creates a completed session."""
        job, profiles = seeded_job
        c = str(profiles["c"].id)

        response = asyncio.run(run_match_step2(db_session, ScriptedLLM(), str(job.id), [c]))

        stored = _fresh(UUID(response.session_id))
        assert stored.status == MatchSessionStatusEnum.COMPLETED
        assert stored.live_key is None
        assert stored.step1_results is None
        assert stored.step2_selections == [c]

    def test_empty_selection(self, db_session):
        """Test that an empty id list is rejected before anything is loaded."""
        with pytest.raises(BadRequestError):
            asyncio.run(run_match_step2(db_session, ScriptedLLM(), str(uuid4()), []))

    def test_missing_job_and_session(self, db_session, seeded_job):
        """Test the not-found cases."""
        job, profiles = seeded_job
        a = str(profiles["a"].id)
        with pytest.raises(NotFoundError):
            asyncio.run(run_match_step2(db_session, ScriptedLLM(), str(uuid4()), [a]))
        with pytest.raises(NotFoundError):
            asyncio.run(run_match_step2(db_session, ScriptedLLM(), str(job.id), [a], str(uuid4())))

    def test_stale_write_is_rejected(self, db_session, seeded_job):
        """Test that a session changed during analysis is not overwritten."""
        job, profiles = seeded_job
        a = str(profiles["a"].id)
        step1 = run_match_step1(db_session, str(job.id))
        session_id = UUID(step1.session_id)

        def concurrent_edit(_profile_id):
            other = db.get_session()
            other.get(MatchSession, session_id).user_notes = "edited elsewhere"
            other.commit()
            other.close()

        llm = ScriptedLLM()
        llm.before_analysis_return = concurrent_edit

        with pytest.raises(ConflictError):
            asyncio.run(run_match_step2(db_session, llm, str(job.id), [a], step1.session_id))

        stored = _fresh(session_id)
        assert stored.user_notes == "edited elsewhere"
        assert stored.status == MatchSessionStatusEnum.STEP1_COMPLETE
        assert stored.step2_results is None

    def test_uppercase_id_matches_step1_candidate(self, db_session, seeded_job):
        """Test that an id sent in uppercase still passes the Step-1 filter."""
        job, profiles = seeded_job
        a = str(profiles["a"].id)
        step1 = run_match_step1(db_session, str(job.id))
        llm = ScriptedLLM()

        response = asyncio.run(run_match_step2(db_session, llm, str(job.id), [a.upper()], step1.session_id))

        assert [r.resume_id for r in response.results] == [a]
        assert llm.analyze_calls == [a]
        assert _fresh(UUID(step1.session_id)).step2_selections == [a]

    def test_case_variants_are_analyzed_once(self, db_session, seeded_job):
        """Test that two spellings of one id yield a single analysis."""
        job, profiles = seeded_job
        a = str(profiles["a"].id)
        llm = ScriptedLLM()

        response = asyncio.run(run_match_step2(db_session, llm, str(job.id), [a, a.upper(), "not-a-uuid"]))

        assert response.total_analyzed == 1
        assert llm.analyze_calls == [a]
        assert _fresh(UUID(response.session_id)).step2_selections == [a]

    def test_database_work_runs_off_the_event_loop(self, db_session, seeded_job):
        """Test that Step-2 queries execute on a worker thread, not the loop thread."""
        job, profiles = seeded_job
        step1 = run_match_step1(db_session, str(job.id))
        loop_thread = threading.get_ident()
        query_threads = []
        event.listen(db_session, "do_orm_execute", lambda state: query_threads.append(threading.get_ident()))

        asyncio.run(
            run_match_step2(db_session, ScriptedLLM(), str(job.id), [str(profiles["a"].id)], step1.session_id)
        )

        assert query_threads
        assert loop_thread not in query_threads


class TestSessionLookup:
    """Tests for reading sessions back."""

    def test_sessions_for_job(self, db_session, seeded_job):
        """Test listing a job's sessions."""
        job, profiles = seeded_job
        run_match_step1(db_session, str(job.id))
        asyncio.run(run_match_step2(db_session, ScriptedLLM(), str(job.id), [str(profiles["a"].id)]))

        sessions = get_match_sessions_for_job(db_session, str(job.id))

        assert len(sessions) == 2
        assert {s.job_id for s in sessions} == {job.id}

    def test_unknown_session(self, db_session):
        """Test that an unknown session id is a not-found error."""
        with pytest.raises(NotFoundError):
            get_match_session(db_session, str(uuid4()))
