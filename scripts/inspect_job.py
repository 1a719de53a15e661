#!/usr/bin/env python3
"""Inspect a job's skill requirements and match sessions.

Usage:
    python scripts/inspect_job.py <job_id>
    python scripts/inspect_job.py <job_id> --step1

This script displays:
- Job card basics
- Canonicalized skill instances (with priority and confidence)
- Match sessions for the job (status, counts, version)
- With --step1: a fresh Step-1 ranking (read-only, nothing is persisted)
"""

import sys
from datetime import datetime
from uuid import UUID

from dotenv import load_dotenv
from sqlalchemy import select

from candidate_matching.db import get_session
from candidate_matching.matching.step1 import find_matching_candidates
from candidate_matching.models import EntityTypeEnum, Job, MatchSession
from candidate_matching.schemas.cards import load_job_card
from candidate_matching.skills.instances import get_skill_instances

load_dotenv()


def format_value(value, max_length: int | None = None) -> str:
    """Format a value for display, optionally truncating."""
    if value is None:
        return "-"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if hasattr(value, "value"):
        return str(value.value)
    val_str = str(value)
    if max_length and len(val_str) > max_length:
        return val_str[:max_length] + "..."
    return val_str


def print_section(title: str):
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)


def print_field(name: str, value, indent: int = 0, max_length: int | None = None):
    prefix = "  " * indent
    print(f"{prefix}{name}: {format_value(value, max_length=max_length)}")


def inspect_job(job_id: UUID, run_step1: bool = False):
    session = get_session()
    try:
        job = session.get(Job, job_id)
        print_section("JOB")
        if job is None:
            print(f"  No job found with id: {job_id}")
            return

        card = load_job_card(job.job_card)
        print_field("ID", job.id)
        print_field("Status", job.status)
        print_field("Title", card.basics.title)
        print_field("Company", card.basics.company)
        print_field("Created At", job.created_at)
        print_field("Original Text", job.original_text, max_length=200)

        print_section("SKILL INSTANCES")
        instances = get_skill_instances(session, EntityTypeEnum.JOB, job.id)
        if not instances:
            print("  (none; run skill_backfill_job)")
        for si in instances:
            print(
                f"  - {si.skill.name:<30} {format_value(si.priority):<13} "
                f"raw={si.raw_label!r} conf={format_value(si.extraction_confidence)}"
            )

        print_section("MATCH SESSIONS")
        sessions = session.execute(
            select(MatchSession)
            .where(MatchSession.job_id == job.id)
            .order_by(MatchSession.created_at)
        ).scalars().all()
        if not sessions:
            print("  (none)")
        for ms in sessions:
            live = " (live)" if ms.live_key is not None else ""
            print(f"  Session {ms.id}{live}")
            print_field("Status", ms.status, indent=2)
            print_field("Version", ms.version, indent=2)
            print_field("Step-1 results", len(ms.step1_results or []), indent=2)
            print_field("Step-2 selections", ms.step2_selections, indent=2)
            print_field("Step-2 results", len(ms.step2_results or []), indent=2)
            print_field("Updated At", ms.updated_at, indent=2)

        if run_step1:
            print_section("STEP-1 RANKING (not persisted)")
            for match in find_matching_candidates(session, job.id):
                print(
                    f"  {match.overlap_score:>3}  {match.profile_id}  "
                    f"must {match.must_have_matches}/{match.must_have_required}  "
                    f"nice {match.nice_to_have_matches}/{match.nice_to_have_total}"
                )
    finally:
        session.close()


def main():
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if not args:
        print("Usage: python scripts/inspect_job.py <job_id> [--step1]")
        sys.exit(1)

    job_id = UUID(args[0])
    print(f"\nInspecting job: {job_id}\n")
    inspect_job(job_id, run_step1="--step1" in sys.argv)


if __name__ == "__main__":
    main()
