"""Completion client backed by OpenRouter."""

from dagster import ConfigurableResource

from candidate_matching.llm.operations import (
    ANALYSIS_PROMPT_VERSION,
    CATEGORIZE_PROMPT_VERSION,
    analyze_candidate,
    categorize_skill,
)
from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.jobs import Job
from candidate_matching.resources.openrouter import OpenRouterResource
from candidate_matching.schemas.matching import CandidateAnalysis, SkillCategorization


class OpenRouterMatchingLLM(ConfigurableResource):
    """MatchingLLM implementation that sends each operation to OpenRouter."""

    openrouter: OpenRouterResource

    async def categorize_skill(self, raw_skill: str) -> SkillCategorization:
        self.openrouter.set_prompt_version(CATEGORIZE_PROMPT_VERSION)
        return await categorize_skill(self.openrouter, raw_skill)

    async def analyze_candidate(self, job: Job, profile: CandidateProfile) -> CandidateAnalysis:
        self.openrouter.set_prompt_version(ANALYSIS_PROMPT_VERSION)
        return await analyze_candidate(self.openrouter, job, profile)
