"""Skill categorization LLM operation.

Given one raw skill label, asks for its standardized canonical name, one of
the five taxonomy categories, and a confidence.

Bump PROMPT_VERSION when changing the prompt.
"""

from typing import TYPE_CHECKING

from candidate_matching.llm.operations.common import response_json
from candidate_matching.schemas.matching import SkillCategorization

if TYPE_CHECKING:
    from candidate_matching.resources.openrouter import OpenRouterResource

# Format: MAJOR.MINOR.PATCH
# - MAJOR: Breaking changes to output schema
# - MINOR: New fields or significant prompt improvements
# - PATCH: Minor wording tweaks or bug fixes
PROMPT_VERSION = "1.0.0"

# Cheap model: short single-label classification
DEFAULT_MODEL = "openai/gpt-4o-mini"

SYSTEM_PROMPT = """You are a skills taxonomy expert. Given a skill name, determine:
1. canonical_name: The standardized name for this skill (e.g., "JavaScript" for "JS", "React" for "ReactJS")
2. category: One of: technical, soft_skill, domain, tool, methodology
3. confidence: 0.0-1.0 how confident you are

Rules:
- Use official names (e.g., "JavaScript" not "JS")
- Keep framework names as-is (e.g., "React", "Vue.js")
- Categorize programming languages as "technical"
- Categorize frameworks/libraries as "tool"
- Categorize communication/leadership as "soft_skill"
- Categorize industry knowledge as "domain"
- Categorize practices (Agile, Scrum) as "methodology"
- Never merge distinct technologies: Java is not JavaScript, SQL is not PostgreSQL, React is not React Native

Respond in JSON format: { "canonical_name": string, "category": string, "confidence": number }"""


async def categorize_skill(
    openrouter: "OpenRouterResource",
    raw_skill: str,
    model: str | None = None,
) -> SkillCategorization:
    """Ask the completion service for the canonical form of a skill label.

    Raises:
        httpx.HTTPError: transport failure
        ValueError: unparseable or schema-invalid response
    """
    response = await openrouter.complete(
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f'Skill: "{raw_skill}"'},
        ],
        model=model or DEFAULT_MODEL,
        operation="categorize_skill",
        response_format={"type": "json_object"},
        temperature=0.0,
    )
    return SkillCategorization.model_validate(response_json(response))
