"""Dagster jobs for the candidate matching pipeline.

OPS JOBS:
- skill_backfill_job: canonicalize card skills into skill instances for every
  job and candidate profile that has a card but no instances yet

USAGE:
Launch skill_backfill_job from the dashboard after loading jobs/resumes whose
cards were extracted outside this pipeline. Re-running is safe: entities that
already have instances are skipped.
"""

import asyncio

from dagster import (
    Backoff,
    Jitter,
    OpExecutionContext,
    RetryPolicy,
    job,
    op,
)
from sqlalchemy import exists, select

from candidate_matching.db import get_session
from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.enums import EntityTypeEnum
from candidate_matching.models.jobs import Job
from candidate_matching.models.skills import SkillInstance
from candidate_matching.resources.matching_llm import OpenRouterMatchingLLM
from candidate_matching.skills.instances import derive_job_skills, derive_profile_skills

# Retry policy for API calls (rate limits, transient errors)
# Uses exponential backoff: 1s, 2s, 4s between retries
openrouter_retry_policy = RetryPolicy(
    max_retries=3,
    delay=1,
    backoff=Backoff.EXPONENTIAL,
    jitter=Jitter.PLUS_MINUS,
)


def _without_instances(model, entity_type: EntityTypeEnum):
    has_instances = exists(
        select(SkillInstance.id).where(
            SkillInstance.entity_type == entity_type,
            SkillInstance.entity_id == model.id,
        )
    )
    return select(model).where(~has_instances).order_by(model.created_at, model.id)


def _prepare_llm(context: OpExecutionContext, scope: str):
    llm = context.resources.matching_llm
    if isinstance(llm, OpenRouterMatchingLLM):
        llm.openrouter.set_context(run_id=context.run_id, scope=scope)
        llm.openrouter.reset_run_costs()
    return llm


def _cost_metadata(llm) -> dict:
    if isinstance(llm, OpenRouterMatchingLLM):
        return llm.openrouter.get_run_costs().to_metadata()
    return {}


def _backfill(context: OpExecutionContext, model, entity_type: EntityTypeEnum, derive, card_attr: str) -> dict:
    llm = _prepare_llm(context, scope=f"skill_backfill_{entity_type.value}")
    session = get_session()
    processed = skipped = errors = 0
    try:
        pending = session.execute(_without_instances(model, entity_type)).scalars().all()
        context.log.info(f"Found {len(pending)} {entity_type.value} records without skill instances")
        for entity in pending:
            if not getattr(entity, card_attr):
                skipped += 1
                continue
            try:
                asyncio.run(derive(session, llm, entity))
                processed += 1
            except Exception as e:
                session.rollback()
                errors += 1
                context.log.error(f"Skill derivation failed for {entity_type.value} {entity.id}: {e}")
    finally:
        session.close()

    context.log.info(
        f"{entity_type.value} backfill: {processed} processed, {skipped} skipped, {errors} errors"
    )
    metadata = _cost_metadata(llm)
    if metadata:
        context.add_output_metadata(metadata)
    return {"processed": processed, "skipped": skipped, "errors": errors}


@op(
    required_resource_keys={"matching_llm"},
    tags={"dagster/concurrency_key": "openrouter_api"},
    description="Derive skill instances for jobs that have a job card but no instances",
)
def backfill_job_skills(context: OpExecutionContext) -> dict:
    return _backfill(context, Job, EntityTypeEnum.JOB, derive_job_skills, "job_card")


@op(
    required_resource_keys={"matching_llm"},
    tags={"dagster/concurrency_key": "openrouter_api"},
    description="Derive skill instances for profiles that have a resume card but no instances",
)
def backfill_profile_skills(context: OpExecutionContext, job_summary: dict) -> dict:
    """Runs after the job backfill so both share one warm taxonomy."""
    summary = _backfill(
        context, CandidateProfile, EntityTypeEnum.PROFILE, derive_profile_skills, "resume_card"
    )
    return {"jobs": job_summary, "profiles": summary}


@job(
    description="Canonicalize card skills into skill instances for jobs and profiles missing them",
    op_retry_policy=openrouter_retry_policy,
)
def skill_backfill_job():
    """Op 1: jobs. Op 2: candidate profiles."""
    backfill_profile_skills(backfill_job_skills())


__all__ = [
    "openrouter_retry_policy",
    "skill_backfill_job",
]
