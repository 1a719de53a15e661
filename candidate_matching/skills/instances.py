"""Skill instance store: the canonical skills attached to each job and profile.

Instances are written only by `replace_skill_instances`, which swaps an
entity's whole set in one transaction. The derive_* helpers enumerate a card's
skill labels, canonicalize each one, and replace the entity's set.
"""

import logging
from collections import defaultdict
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from candidate_matching.llm import MatchingLLM
from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.enums import EntityTypeEnum, SkillPriorityEnum
from candidate_matching.models.jobs import Job
from candidate_matching.models.skills import SkillInstance
from candidate_matching.schemas.cards import load_job_card, load_resume_card
from candidate_matching.schemas.matching import NormalizedSkill
from candidate_matching.skills.resolver import normalize_skill

logger = logging.getLogger(__name__)

# Lower rank wins when one entity lists the same canonical skill twice
_PRIORITY_RANK = {
    SkillPriorityEnum.MUST_HAVE: 0,
    SkillPriorityEnum.CORE: 1,
    SkillPriorityEnum.NICE_TO_HAVE: 2,
    SkillPriorityEnum.PREFERRED: 3,
}


def get_skill_instances(
    session: Session, entity_type: EntityTypeEnum, entity_id: UUID
) -> list[SkillInstance]:
    """Instances of one entity with their canonical skill loaded, in insertion order."""
    return list(
        session.execute(
            select(SkillInstance)
            .options(joinedload(SkillInstance.skill))
            .where(
                SkillInstance.entity_type == entity_type,
                SkillInstance.entity_id == entity_id,
            )
            .order_by(SkillInstance.position, SkillInstance.id)
        ).scalars()
    )


def get_instances_by_entity(
    session: Session, entity_type: EntityTypeEnum
) -> dict[UUID, list[SkillInstance]]:
    """All instances of one entity type grouped by owner.

    Only owners with at least one instance appear. Owners are ordered by the
    first instance's creation, so iteration order is deterministic.
    """
    rows = session.execute(
        select(SkillInstance)
        .options(joinedload(SkillInstance.skill))
        .where(SkillInstance.entity_type == entity_type)
        .order_by(SkillInstance.created_at, SkillInstance.entity_id, SkillInstance.position)
    ).scalars()
    grouped: dict[UUID, list[SkillInstance]] = defaultdict(list)
    for instance in rows:
        grouped[instance.entity_id].append(instance)
    return dict(grouped)


def replace_skill_instances(
    session: Session,
    entity_type: EntityTypeEnum,
    entity_id: UUID,
    normalized: list[NormalizedSkill],
) -> list[SkillInstance]:
    """Replace an entity's instance set with one instance per canonical skill.

    When two labels resolve to the same canonical skill the higher-priority
    one is kept (must_have over nice_to_have). Does not commit.
    """
    by_skill: dict[UUID, NormalizedSkill] = {}
    for item in normalized:
        current = by_skill.get(item.skill_id)
        if current is None or _rank(item.priority) < _rank(current.priority):
            by_skill[item.skill_id] = item

    session.execute(
        delete(SkillInstance).where(
            SkillInstance.entity_type == entity_type,
            SkillInstance.entity_id == entity_id,
        )
    )
    instances = [
        SkillInstance(
            entity_type=entity_type,
            entity_id=entity_id,
            skill_id=item.skill_id,
            raw_label=item.raw_label,
            priority=SkillPriorityEnum(item.priority) if item.priority else None,
            extraction_confidence=item.confidence,
            position=position,
        )
        for position, item in enumerate(by_skill.values())
    ]
    session.add_all(instances)
    session.flush()
    return instances


def _rank(priority: str | None) -> int:
    if priority is None:
        return len(_PRIORITY_RANK)
    return _PRIORITY_RANK[SkillPriorityEnum(priority)]


async def _normalize_all(
    session: Session,
    llm: MatchingLLM,
    labels: list[tuple[str, str]],
    owner: str,
) -> list[NormalizedSkill]:
    normalized: list[NormalizedSkill] = []
    for label, priority in labels:
        try:
            normalized.append(await normalize_skill(session, llm, label, priority))
        except Exception as e:
            logger.error(f"Error normalizing skill {label!r} for {owner}: {e}")
    return normalized


async def derive_job_skills(session: Session, llm: MatchingLLM, job: Job) -> list[SkillInstance]:
    """Canonicalize a job card's requirements into the job's instance set. Commits."""
    card = load_job_card(job.job_card)
    normalized = await _normalize_all(session, llm, card.skill_requirements(), f"job {job.id}")
    instances = replace_skill_instances(session, EntityTypeEnum.JOB, job.id, normalized)
    session.commit()
    logger.info(f"Derived {len(instances)} skill instances for job {job.id}")
    return instances


async def derive_profile_skills(
    session: Session, llm: MatchingLLM, profile: CandidateProfile
) -> list[SkillInstance]:
    """Canonicalize a resume card's skills into the profile's instance set. Commits."""
    card = load_resume_card(profile.resume_card)
    labels = [(label, SkillPriorityEnum.CORE.value) for label in card.skill_labels()]
    normalized = await _normalize_all(session, llm, labels, f"profile {profile.id}")
    instances = replace_skill_instances(session, EntityTypeEnum.PROFILE, profile.id, normalized)
    session.commit()
    logger.info(f"Derived {len(instances)} skill instances for profile {profile.id}")
    return instances
