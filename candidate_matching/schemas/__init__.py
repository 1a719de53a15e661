from candidate_matching.schemas.cards import JobCard, ResumeCard, load_job_card, load_resume_card
from candidate_matching.schemas.matching import (
    AIMatchResult,
    CandidateAnalysis,
    CandidateMatch,
    EvidenceItem,
    MappedAnalysisResult,
    MatchedSkill,
    MissingSkill,
    NormalizedSkill,
    SkillCategorization,
)

__all__ = [
    "JobCard",
    "ResumeCard",
    "load_job_card",
    "load_resume_card",
    "AIMatchResult",
    "CandidateAnalysis",
    "CandidateMatch",
    "EvidenceItem",
    "MappedAnalysisResult",
    "MatchedSkill",
    "MissingSkill",
    "NormalizedSkill",
    "SkillCategorization",
]
