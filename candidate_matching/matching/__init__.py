"""Two-phase candidate matching: deterministic Step-1 and deep-analysis Step-2."""

from candidate_matching.matching.sessions import (
    get_job,
    get_match_session,
    get_match_sessions_for_job,
    run_match_step1,
    run_match_step2,
)
from candidate_matching.matching.step1 import (
    MIN_OVERLAP_SCORE,
    SCORING_POLICY,
    calculate_overlap_score,
    find_matching_candidates,
    get_match_details,
)
from candidate_matching.matching.step2 import (
    ANALYSIS_BATCH_SIZE,
    analyze_multiple_candidates,
    analyze_single_candidate,
)

__all__ = [
    "ANALYSIS_BATCH_SIZE",
    "MIN_OVERLAP_SCORE",
    "SCORING_POLICY",
    "analyze_multiple_candidates",
    "analyze_single_candidate",
    "calculate_overlap_score",
    "find_matching_candidates",
    "get_job",
    "get_match_details",
    "get_match_session",
    "get_match_sessions_for_job",
    "run_match_step1",
    "run_match_step2",
]
