"""Mock completion resource for development and testing.

Implements the MatchingLLM interface without making API calls. Answers are
deterministic so repeated runs produce the same taxonomy and scores.
"""

from dagster import ConfigurableResource
from pydantic import Field

from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.jobs import Job
from candidate_matching.schemas.cards import load_job_card, load_resume_card
from candidate_matching.schemas.matching import (
    CandidateAnalysis,
    EvidenceItem,
    SkillCategorization,
)

# lowercase label -> (canonical name, category)
KNOWN_SKILLS: dict[str, tuple[str, str]] = {
    "js": ("JavaScript", "technical"),
    "javascript": ("JavaScript", "technical"),
    "ts": ("TypeScript", "technical"),
    "typescript": ("TypeScript", "technical"),
    "py": ("Python", "technical"),
    "python": ("Python", "technical"),
    "python3": ("Python", "technical"),
    "golang": ("Go", "technical"),
    "sql": ("SQL", "technical"),
    "reactjs": ("React", "tool"),
    "react.js": ("React", "tool"),
    "react": ("React", "tool"),
    "node": ("Node.js", "tool"),
    "nodejs": ("Node.js", "tool"),
    "node.js": ("Node.js", "tool"),
    "postgres": ("PostgreSQL", "tool"),
    "postgresql": ("PostgreSQL", "tool"),
    "docker": ("Docker", "tool"),
    "k8s": ("Kubernetes", "tool"),
    "kubernetes": ("Kubernetes", "tool"),
    "aws": ("AWS", "tool"),
    "agile": ("Agile", "methodology"),
    "scrum": ("Scrum", "methodology"),
    "communication": ("Communication", "soft_skill"),
    "leadership": ("Leadership", "soft_skill"),
}

_CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("soft_skill", ("communication", "leadership", "teamwork", "mentoring", "collaboration")),
    ("methodology", ("agile", "scrum", "kanban", "tdd", "devops", "lean")),
    ("domain", ("finance", "banking", "healthcare", "insurance", "retail", "logistics")),
    ("tool", ("framework", "library", "studio", "cloud", "server")),
]


def _classify(label: str) -> str:
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in label for k in keywords):
            return category
    return "technical"


class MockLLMResource(ConfigurableResource):
    """Deterministic stand-in for the completion service."""

    model_version: str = Field(
        default="mock-v1",
        description="Version identifier for the mock model",
    )
    known_confidence: float = Field(default=0.95, description="Confidence for table hits")
    guessed_confidence: float = Field(default=0.6, description="Confidence for rule guesses")

    async def categorize_skill(self, raw_skill: str) -> SkillCategorization:
        label = " ".join(raw_skill.split()).lower()
        if label in KNOWN_SKILLS:
            name, category = KNOWN_SKILLS[label]
            return SkillCategorization(
                canonical_name=name, category=category, confidence=self.known_confidence
            )
        return SkillCategorization(
            canonical_name=label.title(),
            category=_classify(label),
            confidence=self.guessed_confidence,
        )

    async def analyze_candidate(self, job: Job, profile: CandidateProfile) -> CandidateAnalysis:
        job_card = load_job_card(job.job_card)
        resume_card = load_resume_card(profile.resume_card)
        required = [label for label, _ in job_card.skill_requirements()]
        held = {label.lower() for label in resume_card.skill_labels()}

        matched = [r for r in required if r.lower() in held]
        missing = [r for r in required if r.lower() not in held]
        score = round(100 * len(matched) / len(required)) if required else 50

        evidence = [
            EvidenceItem(
                category="technical_skills",
                job_quote=r,
                resume_quote=r,
                assessment="Listed in both job requirements and resume",
            )
            for r in matched[:3]
        ]
        return CandidateAnalysis(
            match_score=score,
            explanation=f"Mock analysis: {len(matched)} of {len(required)} requirements found on the resume.",
            evidence=evidence,
            concerns=[f"No evidence of {m}" for m in missing],
            strengths=[f"Has {m}" for m in matched],
            confidence=0.6,
        )
