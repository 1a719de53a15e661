"""LLM operation modules.

Each module contains:
- PROMPT_VERSION: Bump when the prompt changes
- SYSTEM_PROMPT: The prompt template
- An async function that performs the operation and returns a validated schema
"""

from candidate_matching.llm.operations.analyze_candidate import (
    PROMPT_VERSION as ANALYSIS_PROMPT_VERSION,
)
from candidate_matching.llm.operations.analyze_candidate import (
    analyze_candidate,
    build_user_prompt,
)
from candidate_matching.llm.operations.categorize_skill import (
    PROMPT_VERSION as CATEGORIZE_PROMPT_VERSION,
)
from candidate_matching.llm.operations.categorize_skill import (
    categorize_skill,
)

__all__ = [
    "ANALYSIS_PROMPT_VERSION",
    "analyze_candidate",
    "build_user_prompt",
    "CATEGORIZE_PROMPT_VERSION",
    "categorize_skill",
]
