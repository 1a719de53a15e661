"""Completion-service client interface for the matching pipeline.

The Canonicalizer and the Deep Analyzer receive a `MatchingLLM` instead of
reaching for a module-level client, so tests and development runs can pass
a deterministic implementation.

Implementations:
- OpenRouterMatchingLLM (resources.matching_llm): real completion calls
- MockLLMResource (resources.llm): deterministic, no network
"""

from typing import Protocol, runtime_checkable

from candidate_matching.llm.operations import (
    ANALYSIS_PROMPT_VERSION,
    CATEGORIZE_PROMPT_VERSION,
    analyze_candidate,
    categorize_skill,
)
from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.jobs import Job
from candidate_matching.schemas.matching import CandidateAnalysis, SkillCategorization


@runtime_checkable
class MatchingLLM(Protocol):
    """Stateless completion client used by the matching pipeline.

    Both methods may raise on transport or parse failures; callers degrade
    those failures into placeholder values.
    """

    async def categorize_skill(self, raw_skill: str) -> SkillCategorization: ...

    async def analyze_candidate(
        self, job: Job, profile: CandidateProfile
    ) -> CandidateAnalysis: ...


__all__ = [
    "MatchingLLM",
    "ANALYSIS_PROMPT_VERSION",
    "CATEGORIZE_PROMPT_VERSION",
    "analyze_candidate",
    "categorize_skill",
]
