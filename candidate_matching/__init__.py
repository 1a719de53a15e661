"""Candidate matching: skill canonicalization and two-phase job/candidate matching."""
