"""Dagster definitions for the candidate matching system.

This module is the entry point for Dagster. It wires together:
- Resources (the completion client used for skill canonicalization)
- Jobs (skill backfill)
- Configuration for different environments (development, staging, production)
"""

from dagster import Definitions
from dotenv import load_dotenv

from candidate_matching.jobs import skill_backfill_job
from candidate_matching.resources import build_matching_llm, get_environment

# Load environment variables from .env file (must be before resource initialization)
load_dotenv()


def get_resources() -> dict:
    """Get resources based on current environment.

    Development uses the deterministic mock; staging and production call OpenRouter.
    """
    return {"matching_llm": build_matching_llm(scope="skill_backfill", run_id="dagster")}


all_jobs = [skill_backfill_job]

defs = Definitions(
    resources=get_resources(),
    jobs=all_jobs,
)


def main():
    """Entry point for CLI usage."""
    print("Candidate Matching Dagster project loaded successfully!")
    print(f"Environment: {get_environment()}")
    print(f"Jobs: {len(all_jobs)}")
    print("\nAvailable jobs:")
    for j in all_jobs:
        print(f"  - {j.name}")
    print("\nRun 'dagster dev' to start the development server.")


if __name__ == "__main__":
    main()
