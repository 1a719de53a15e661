"""Skill canonicalization: label cleanup, alias lookup, and get-or-create.

All taxonomy lookups and mutations go through this module. Creation of
canonical skills and aliases is a single INSERT ... ON CONFLICT DO NOTHING
followed by a read, so concurrent ingestion of the same novel label converges
on one row.
"""

import logging
import re
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from candidate_matching.db import dialect_insert
from candidate_matching.llm import MatchingLLM
from candidate_matching.models.enums import AliasSourceEnum, SkillCategoryEnum
from candidate_matching.models.skills import Skill, SkillAlias
from candidate_matching.schemas.matching import NormalizedSkill, SkillCategorization

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = SkillCategoryEnum.TECHNICAL
FALLBACK_CONFIDENCE = 0.5

# '+' and '#' are kept so C, C++ and C# stay distinct; \w is Unicode-aware
_STRIP_CHARS = re.compile(r"[^\w\s.+#-]")


def clean_skill_label(label: str) -> str:
    """Normalize a raw label for lookup: drop punctuation, collapse whitespace, lowercase."""
    return " ".join(_STRIP_CHARS.sub("", label).split()).lower()


def find_skill_by_alias(session: Session, alias: str) -> tuple[Skill, float] | None:
    """Return (canonical skill, alias confidence) for a cleaned label, best alias first."""
    row = session.execute(
        select(Skill, SkillAlias.confidence)
        .join(SkillAlias, SkillAlias.skill_id == Skill.id)
        .where(SkillAlias.alias == alias)
        .order_by(SkillAlias.confidence.desc(), SkillAlias.created_at)
        .limit(1)
    ).first()
    if row is None:
        return None
    return row[0], row[1]


def find_skill_by_name(session: Session, name: str) -> Skill | None:
    return session.execute(
        select(Skill).where(Skill.normalized_name == clean_skill_label(name))
    ).scalar_one_or_none()


def get_or_create_skill(
    session: Session,
    name: str,
    category: SkillCategoryEnum | str,
    *,
    created_by: str = "llm",
) -> Skill:
    """Get the canonical skill with this name, creating it if absent.

    The lookup key is the cleaned name; the display name of an existing row is
    never changed.
    """
    key = clean_skill_label(name)
    if not key:
        raise ValueError(f"skill name {name!r} is blank after cleanup")

    stmt = dialect_insert(session, Skill).values(
        id=uuid4(),
        name=" ".join(name.split()),
        normalized_name=key,
        category=SkillCategoryEnum(category),
        created_by=created_by,
    )
    stmt = stmt.on_conflict_do_nothing(index_elements=["normalized_name"])
    session.execute(stmt)
    session.flush()

    return session.execute(select(Skill).where(Skill.normalized_name == key)).scalar_one()


def add_alias(
    session: Session,
    alias: str,
    skill_id: UUID,
    *,
    confidence: float,
    source: AliasSourceEnum = AliasSourceEnum.AI,
) -> None:
    """Map a cleaned label to a canonical skill; an existing pair is left untouched."""
    stmt = dialect_insert(session, SkillAlias).values(
        id=uuid4(),
        alias=alias,
        skill_id=skill_id,
        confidence=confidence,
        source=source,
    )
    stmt = stmt.on_conflict_do_nothing(index_elements=["alias", "skill_id"])
    session.execute(stmt)
    session.flush()


async def _categorize(llm: MatchingLLM, raw_label: str, cleaned: str) -> tuple[SkillCategorization, bool]:
    """Ask the completion service; degrade to the cleaned label on any failure.

    Returns the categorization and whether it came from the fallback.
    """
    try:
        categorization = await llm.categorize_skill(raw_label)
        if not clean_skill_label(categorization.canonical_name):
            raise ValueError(f"canonical name {categorization.canonical_name!r} has no usable characters")
        return categorization, False
    except Exception as e:
        logger.warning(f"Skill categorization failed for {raw_label!r}, using fallback: {e}")
        fallback = SkillCategorization(
            canonical_name=cleaned,
            category=FALLBACK_CATEGORY.value,
            confidence=FALLBACK_CONFIDENCE,
        )
        return fallback, True


async def normalize_skill(
    session: Session,
    llm: MatchingLLM,
    raw_label: str,
    priority: str | None = None,
) -> NormalizedSkill:
    """Resolve a raw skill label to its canonical skill.

    Resolution order:
    1. The cleaned label is a known alias -> canonical skill, alias confidence.
    2. The cleaned label is itself a canonical name -> that skill, confidence 1.0.
    3. Ask the completion service for name/category/confidence (falling back to
       the cleaned label, technical, 0.5), get-or-create the canonical skill,
       and record the cleaned label as an alias when it differs.

    Creates at most one Skill and one SkillAlias. Completion-service failures
    never propagate.

    Raises:
        ValueError: the label is blank after cleanup
    """
    cleaned = clean_skill_label(raw_label)
    if not cleaned:
        raise ValueError(f"skill label {raw_label!r} is blank after cleanup")

    hit = find_skill_by_alias(session, cleaned)
    if hit is not None:
        skill, confidence = hit
        return _result(skill, raw_label, priority, confidence)

    skill = find_skill_by_name(session, cleaned)
    if skill is not None:
        return _result(skill, raw_label, priority, 1.0)

    categorization, is_fallback = await _categorize(llm, raw_label, cleaned)
    skill = get_or_create_skill(
        session,
        categorization.canonical_name,
        categorization.category,
        created_by="fallback" if is_fallback else "llm",
    )
    if cleaned != skill.normalized_name:
        add_alias(session, cleaned, skill.id, confidence=categorization.confidence)
        logger.info(f"Aliased {cleaned!r} -> {skill.name!r} ({categorization.confidence:.2f})")

    return _result(skill, raw_label, priority, categorization.confidence)


def _result(skill: Skill, raw_label: str, priority: str | None, confidence: float) -> NormalizedSkill:
    return NormalizedSkill(
        skill_id=skill.id,
        canonical_name=skill.name,
        category=SkillCategoryEnum(skill.category).value,
        raw_label=raw_label,
        priority=priority,
        confidence=confidence,
    )
