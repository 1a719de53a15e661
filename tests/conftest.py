"""Shared fixtures: a fresh SQLite database per test and a scripted completion client."""

import asyncio

import pytest

from candidate_matching import db
from candidate_matching.models import (
    CandidateProfile,
    EntityTypeEnum,
    Job,
    ProcessingStatusEnum,
    SkillInstance,
    SkillPriorityEnum,
)
from candidate_matching.schemas.matching import CandidateAnalysis, SkillCategorization
from candidate_matching.skills.resolver import get_or_create_skill


@pytest.fixture
def db_session(tmp_path, monkeypatch):
    """Session bound to an empty SQLite database file."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'matching.db'}")
    db.reset_engine()
    db.create_schema()
    session = db.get_session()
    yield session
    session.close()
    db.reset_engine()


class ScriptedLLM:
    """Completion client whose answers are set per test.

    `categories` maps a raw label to a SkillCategorization or an Exception.
    Unscripted labels are title-cased as technical skills with confidence 0.9.
    `scores` maps a profile id to a score or an Exception; unscripted
    profiles score 50.
    """

    def __init__(self, categories=None, scores=None):
        self.categories = categories or {}
        self.scores = scores or {}
        self.categorize_calls: list[str] = []
        self.analyze_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.before_analysis_return = None

    async def categorize_skill(self, raw_skill: str) -> SkillCategorization:
        self.categorize_calls.append(raw_skill)
        answer = self.categories.get(raw_skill)
        if isinstance(answer, Exception):
            raise answer
        if answer is not None:
            return answer
        return SkillCategorization(
            canonical_name=raw_skill.strip().title(), category="technical", confidence=0.9
        )

    async def analyze_candidate(self, job: Job, profile: CandidateProfile) -> CandidateAnalysis:
        pid = str(profile.id)
        self.analyze_calls.append(pid)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.before_analysis_return is not None:
                self.before_analysis_return(pid)
            answer = self.scores.get(pid, 50)
            if isinstance(answer, Exception):
                raise answer
            return CandidateAnalysis(
                match_score=answer,
                explanation=f"score {answer}",
                strengths=["relevant experience"],
                confidence=0.8,
            )
        finally:
            self.in_flight -= 1


@pytest.fixture
def llm():
    return ScriptedLLM()


def make_job(session, technical=(), nice_to_have=(), soft=(), preferred=(), title="Backend Engineer"):
    job = Job(
        status=ProcessingStatusEnum.COMPLETED,
        original_text=f"{title} wanted.",
        job_card={
            "basics": {"title": title, "company": "Acme"},
            "requirements": {
                "technical_skills": list(technical),
                "soft_skills": list(soft),
                "nice_to_have": list(nice_to_have),
            },
            "preferred_skills": list(preferred),
        },
    )
    session.add(job)
    session.commit()
    return job


def make_profile(session, name="Ada Lovelace", skills=(), experience=None):
    card = {
        "personal_info": {"name": name},
        "technical_skills": [{"skill": s} for s in skills],
    }
    if experience:
        card["work_experience"] = [{"title": "Engineer", "description": experience}]
    profile = CandidateProfile(
        status=ProcessingStatusEnum.COMPLETED,
        original_text=f"{name} resume",
        resume_card=card,
    )
    session.add(profile)
    session.commit()
    return profile


def attach_skills(session, entity_type, entity_id, skills):
    """Give an entity instances of the named skills.

    `skills` is a list of names or (name, priority) pairs; bare names get the
    default priority for the entity type.
    """
    default = SkillPriorityEnum.MUST_HAVE if entity_type == EntityTypeEnum.JOB else SkillPriorityEnum.CORE
    for position, item in enumerate(skills):
        name, priority = item if isinstance(item, tuple) else (item, default)
        skill = get_or_create_skill(session, name, "technical", created_by="seed")
        session.add(
            SkillInstance(
                entity_type=entity_type,
                entity_id=entity_id,
                skill_id=skill.id,
                raw_label=name,
                priority=SkillPriorityEnum(priority),
                extraction_confidence=1.0,
                position=position,
            )
        )
    session.commit()


@pytest.fixture
def seeded_job(db_session):
    """Job needing Python and SQL, with Docker as a nice-to-have, and three candidates.

    Returns (job, {"a": full match, "b": Python only, "c": Java only}).
    """
    job = make_job(db_session, technical=["Python", "SQL"], nice_to_have=["Docker"])
    attach_skills(
        db_session,
        EntityTypeEnum.JOB,
        job.id,
        [("Python", "must_have"), ("SQL", "must_have"), ("Docker", "nice_to_have")],
    )
    profiles = {
        "a": make_profile(db_session, "Alice", ["Python", "SQL", "Docker"]),
        "b": make_profile(db_session, "Bob", ["Python"]),
        "c": make_profile(db_session, "Carol", ["Java"]),
    }
    attach_skills(db_session, EntityTypeEnum.PROFILE, profiles["a"].id, ["Python", "SQL", "Docker"])
    attach_skills(db_session, EntityTypeEnum.PROFILE, profiles["b"].id, ["Python"])
    attach_skills(db_session, EntityTypeEnum.PROFILE, profiles["c"].id, ["Java"])
    return job, profiles
