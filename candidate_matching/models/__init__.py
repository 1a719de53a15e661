"""SQLAlchemy models for the candidate matching database."""

from candidate_matching.models.base import Base
from candidate_matching.models.enums import (
    MUST_HAVE_PRIORITIES,
    NICE_TO_HAVE_PRIORITIES,
    AliasSourceEnum,
    EntityTypeEnum,
    MatchSessionStatusEnum,
    ProcessingStatusEnum,
    SkillCategoryEnum,
    SkillPriorityEnum,
)
from candidate_matching.models.skills import Skill, SkillAlias, SkillInstance
from candidate_matching.models.jobs import Job
from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.matches import MatchSession
from candidate_matching.models.llm_costs import LLMCost

__all__ = [
    # Base
    "Base",
    # Enums
    "AliasSourceEnum",
    "EntityTypeEnum",
    "MatchSessionStatusEnum",
    "ProcessingStatusEnum",
    "SkillCategoryEnum",
    "SkillPriorityEnum",
    "MUST_HAVE_PRIORITIES",
    "NICE_TO_HAVE_PRIORITIES",
    # Skills
    "Skill",
    "SkillAlias",
    "SkillInstance",
    # Documents
    "Job",
    "CandidateProfile",
    # Matching
    "MatchSession",
    # LLM Costs
    "LLMCost",
]
