"""Result payloads for both matching phases and the HTTP surface.

Payloads are persisted on MatchSession in snake_case (`model_dump(mode="json")`)
and served over HTTP in camelCase.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Skill canonicalization
# ---------------------------------------------------------------------------


class NormalizedSkill(CamelModel):
    """Outcome of canonicalizing one raw label."""

    skill_id: UUID
    canonical_name: str
    category: str
    raw_label: str
    priority: str | None = None
    confidence: float


class SkillCategorization(BaseModel):
    """Completion-service answer for an unknown skill label."""

    canonical_name: str = Field(min_length=1)
    category: Literal["technical", "soft_skill", "domain", "tool", "methodology"]
    confidence: float = Field(ge=0.0, le=1.0)

    @field_validator("canonical_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = " ".join(value.split())
        if not value:
            raise ValueError("canonical_name is blank")
        return value


# ---------------------------------------------------------------------------
# Step-1
# ---------------------------------------------------------------------------


class MatchedSkill(CamelModel):
    canonical_name: str
    category: str
    raw_label: str
    priority: Literal["must_have", "nice_to_have"]
    matched_by: Literal["canonical", "fuzzy"] = "canonical"


class MissingSkill(CamelModel):
    canonical_name: str
    category: str
    priority: Literal["must_have", "nice_to_have"]
    severity: Literal["critical", "preferred"]


class CandidateMatch(CamelModel):
    profile_id: str
    overlap_score: int = Field(ge=0, le=100)
    matched_skills: list[MatchedSkill]
    missing_skills: list[MissingSkill]
    total_job_skills: int
    total_candidate_skills: int
    must_have_matches: int
    must_have_required: int
    nice_to_have_matches: int
    nice_to_have_total: int


# ---------------------------------------------------------------------------
# Step-2
# ---------------------------------------------------------------------------


class EvidenceItem(CamelModel):
    category: str = "general"
    job_quote: str = ""
    resume_quote: str = ""
    assessment: str = ""


class CandidateAnalysis(BaseModel):
    """Completion-service answer for one job/candidate pair."""

    match_score: int = Field(ge=0, le=100)
    explanation: str = ""
    evidence: list[EvidenceItem] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    @field_validator("match_score", mode="before")
    @classmethod
    def _round_score(cls, value):
        if isinstance(value, float):
            return round(value)
        return value


class AIMatchResult(CamelModel):
    profile_id: str
    profile_name: str
    ai_score: int
    explanation: str
    evidence: list[EvidenceItem]
    concerns: list[str]
    strengths: list[str]
    confidence: float

    @classmethod
    def failed(cls, profile_id: str, profile_name: str) -> "AIMatchResult":
        """Placeholder for a candidate whose analysis could not be completed."""
        return cls(
            profile_id=profile_id,
            profile_name=profile_name,
            ai_score=0,
            explanation="Analysis failed due to an error.",
            evidence=[],
            concerns=["AI analysis unavailable"],
            strengths=[],
            confidence=0.0,
        )


class MappedAnalysisResult(CamelModel):
    resume_id: str
    candidate_name: str
    match_score: int
    summary: str
    strengths: list[str]
    concerns: list[str]
    evidence: list[EvidenceItem]
    confidence: float

    @classmethod
    def from_result(cls, result: AIMatchResult) -> "MappedAnalysisResult":
        return cls(
            resume_id=result.profile_id,
            candidate_name=result.profile_name,
            match_score=result.ai_score,
            summary=result.explanation,
            strengths=result.strengths,
            concerns=result.concerns,
            evidence=result.evidence,
            confidence=result.confidence,
        )


# ---------------------------------------------------------------------------
# HTTP payloads
# ---------------------------------------------------------------------------


class MatchStep1Response(CamelModel):
    session_id: str
    matches: list[CandidateMatch]
    total_matches: int


class MatchStep2Request(CamelModel):
    profile_ids: list[str] = Field(default_factory=list)
    session_id: str | None = None


class MatchStep2Response(CamelModel):
    session_id: str
    results: list[MappedAnalysisResult]
    total_analyzed: int


class MatchSessionOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    job_id: UUID
    status: str
    step1_results: list[dict] | None = None
    step2_selections: list[str] | None = None
    step2_results: list[dict] | None = None
    user_notes: str | None = None
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _enum_value(cls, value):
        return getattr(value, "value", value)


class MatchSessionList(CamelModel):
    sessions: list[MatchSessionOut]
    total: int
