"""Step-1 matching: deterministic skill-overlap scoring of the candidate population.

For one job, every candidate profile holding at least one skill instance is
scored 0-100:

    score = 70 * (must-have coverage) + 30 * (nice-to-have coverage)

where a tier with no requirements counts as fully covered. A requirement is
covered when the candidate holds the same canonical skill, or, failing that,
when a token-Jaccard comparison (with a small synonym table) finds it among
the candidate's raw skill labels or work-experience text.

Policy: graduated. Missing must-haves lower the score proportionally rather
than zeroing it; candidates scoring below MIN_OVERLAP_SCORE are dropped.
"""

import logging
import re
import time
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.enums import (
    MUST_HAVE_PRIORITIES,
    NICE_TO_HAVE_PRIORITIES,
    EntityTypeEnum,
)
from candidate_matching.models.skills import SkillInstance
from candidate_matching.schemas.cards import load_resume_card
from candidate_matching.schemas.matching import CandidateMatch, MatchedSkill, MissingSkill
from candidate_matching.skills.instances import get_instances_by_entity, get_skill_instances

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════
# SCORING POLICY
# ═══════════════════════════════════════════════════════════════════
SCORING_POLICY = "graduated"
MUST_HAVE_WEIGHT = 70
NICE_TO_HAVE_WEIGHT = 30
MIN_OVERLAP_SCORE = 20

FUZZY_MATCH_THRESHOLD = 0.4

# token -> canonical token(s)
SKILL_SYNONYMS: dict[str, str] = {
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "golang": "go",
    "k8s": "kubernetes",
    "postgres": "postgresql",
    "psql": "postgresql",
    "reactjs": "react",
    "react.js": "react",
    "nodejs": "node.js",
    "node": "node.js",
    "vuejs": "vue.js",
    "ml": "machine learning",
    "nlp": "natural language processing",
    "gcp": "google cloud",
    "tf": "terraform",
}

_TOKEN = re.compile(r"[a-z0-9+#][a-z0-9+#.\-]*")


def calculate_overlap_score(
    must_have_matches: int,
    must_have_required: int,
    nice_to_have_matches: int,
    nice_to_have_total: int,
) -> int:
    """Weighted 0-100 overlap; a tier without requirements earns its full weight."""
    must_ratio = must_have_matches / must_have_required if must_have_required else 1.0
    nice_ratio = nice_to_have_matches / nice_to_have_total if nice_to_have_total else 1.0
    return round(MUST_HAVE_WEIGHT * must_ratio + NICE_TO_HAVE_WEIGHT * nice_ratio)


def tokenize(text: str) -> list[str]:
    """Lowercase skill tokens with synonyms expanded."""
    tokens: list[str] = []
    for raw in _TOKEN.findall(text.lower()):
        token = raw.rstrip(".-")
        if not token:
            continue
        tokens.extend(SKILL_SYNONYMS.get(token, token).split())
    return tokens


def jaccard(a: set[str], b: set[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def fuzzy_skill_match(
    skill_terms: Iterable[str],
    candidate_labels: Iterable[str],
    experience_tokens: list[str],
    threshold: float = FUZZY_MATCH_THRESHOLD,
) -> bool:
    """True when any job-side term is similar enough to a candidate label or experience phrase.

    Experience text is compared window by window, each window as long as the
    term's token count.
    """
    label_sets = [set(tokenize(label)) for label in candidate_labels]
    for term in skill_terms:
        term_tokens = tokenize(term)
        term_set = set(term_tokens)
        if not term_set:
            continue
        if any(jaccard(term_set, label_set) >= threshold for label_set in label_sets):
            return True
        width = len(term_tokens)
        for start in range(0, max(len(experience_tokens) - width + 1, 0)):
            window = set(experience_tokens[start : start + width])
            if jaccard(term_set, window) >= threshold:
                return True
    return False


def _partition(job_instances: list[SkillInstance]) -> tuple[list[SkillInstance], list[SkillInstance]]:
    must_have = [si for si in job_instances if si.priority in MUST_HAVE_PRIORITIES]
    nice_to_have = [si for si in job_instances if si.priority in NICE_TO_HAVE_PRIORITIES]
    return must_have, nice_to_have


def score_candidate(
    profile_id: UUID | str,
    job_instances: list[SkillInstance],
    candidate_instances: list[SkillInstance],
    experience_text: str = "",
) -> CandidateMatch:
    """Score one candidate against a job's skill instances (no threshold applied)."""
    must_have, nice_to_have = _partition(job_instances)
    held_ids = {si.skill_id for si in candidate_instances}
    candidate_labels = [si.raw_label for si in candidate_instances] + [
        si.skill.name for si in candidate_instances
    ]
    experience_tokens = tokenize(experience_text) if experience_text else []

    def match_kind(job_skill: SkillInstance) -> str | None:
        if job_skill.skill_id in held_ids:
            return "canonical"
        terms = [job_skill.skill.name, job_skill.raw_label]
        if fuzzy_skill_match(terms, candidate_labels, experience_tokens):
            return "fuzzy"
        return None

    matched: list[MatchedSkill] = []
    missing: list[MissingSkill] = []
    tier_matches = {"must_have": 0, "nice_to_have": 0}
    for tier, severity, skills in (
        ("must_have", "critical", must_have),
        ("nice_to_have", "preferred", nice_to_have),
    ):
        for job_skill in skills:
            category = getattr(job_skill.skill.category, "value", job_skill.skill.category)
            kind = match_kind(job_skill)
            if kind is None:
                missing.append(
                    MissingSkill(
                        canonical_name=job_skill.skill.name,
                        category=category,
                        priority=tier,
                        severity=severity,
                    )
                )
                continue
            tier_matches[tier] += 1
            matched.append(
                MatchedSkill(
                    canonical_name=job_skill.skill.name,
                    category=category,
                    raw_label=job_skill.raw_label,
                    priority=tier,
                    matched_by=kind,
                )
            )

    return CandidateMatch(
        profile_id=str(profile_id),
        overlap_score=calculate_overlap_score(
            tier_matches["must_have"],
            len(must_have),
            tier_matches["nice_to_have"],
            len(nice_to_have),
        ),
        matched_skills=matched,
        missing_skills=missing,
        total_job_skills=len(job_instances),
        total_candidate_skills=len(candidate_instances),
        must_have_matches=tier_matches["must_have"],
        must_have_required=len(must_have),
        nice_to_have_matches=tier_matches["nice_to_have"],
        nice_to_have_total=len(nice_to_have),
    )


def find_matching_candidates(session: Session, job_id: UUID) -> list[CandidateMatch]:
    """Rank every candidate with skills against the job; best first.

    Candidates below MIN_OVERLAP_SCORE are dropped. Ties keep population
    order, which is deterministic for a given database state.
    """
    started = time.monotonic()
    job_instances = get_skill_instances(session, EntityTypeEnum.JOB, job_id)
    if not job_instances:
        logger.info(f"No skills found for job {job_id}")
        return []

    must_have, nice_to_have = _partition(job_instances)
    logger.info(
        f"Job {job_id} requires {len(must_have)} must-have and "
        f"{len(nice_to_have)} nice-to-have skills"
    )

    population = get_instances_by_entity(session, EntityTypeEnum.PROFILE)
    profiles = {
        p.id: p
        for p in session.execute(
            select(CandidateProfile).where(CandidateProfile.id.in_(list(population)))
        ).scalars()
    } if population else {}

    matches: list[CandidateMatch] = []
    for profile_id, candidate_instances in population.items():
        profile = profiles.get(profile_id)
        if profile is None:
            continue
        experience_text = load_resume_card(profile.resume_card).experience_text()
        match = score_candidate(profile_id, job_instances, candidate_instances, experience_text)
        if match.overlap_score < MIN_OVERLAP_SCORE:
            continue
        matches.append(match)

    matches.sort(key=lambda m: m.overlap_score, reverse=True)
    logger.info(
        f"Compared {len(profiles)} profiles for job {job_id}: {len(matches)} matches "
        f"in {time.monotonic() - started:.2f}s"
    )
    return matches


def get_match_details(session: Session, job_id: UUID, profile_id: UUID) -> CandidateMatch | None:
    """Step-1 result for one candidate, or None when the candidate does not survive Step-1."""
    for match in find_matching_candidates(session, job_id):
        if match.profile_id == str(profile_id):
            return match
    return None
