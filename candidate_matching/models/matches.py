"""Match session model: the audit trail of one job's two-phase matching."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from candidate_matching.models.base import Base
from candidate_matching.models.enums import MatchSessionStatusEnum


class MatchSession(Base):
    """Persisted state of one job's matching effort across Step-1 and Step-2.

    Sessions are never deleted. `live_key` equals `job_id` on the session that
    repeated Step-1 runs reuse and is NULL on ad-hoc Step-2 sessions; the
    unique constraint on it makes the reusable session a single upsert target.
    `version` is an optimistic lock: a write based on a stale read fails.
    """

    __tablename__ = "match_sessions"
    __table_args__ = (Index("ix_match_sessions_job", "job_id"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    job_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    live_key: Mapped[UUID | None] = mapped_column(Uuid, nullable=True, unique=True)

    status: Mapped[MatchSessionStatusEnum] = mapped_column(
        Enum(MatchSessionStatusEnum, name="match_session_status_enum"),
        default=MatchSessionStatusEnum.STEP1_PENDING,
    )

    # ═══════════════════════════════════════════════════════════════════
    # PHASE PAYLOADS
    # ═══════════════════════════════════════════════════════════════════
    step1_results: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    step2_selections: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    step2_results: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    user_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    job: Mapped["Job"] = relationship("Job")

    __mapper_args__ = {"version_id_col": version}

    def step1_profile_ids(self) -> list[str] | None:
        """Candidate ids surfaced by Step-1, or None when Step-1 never ran on this session."""
        if self.step1_results is None:
            return None
        return [str(r["profile_id"]) for r in self.step1_results]


from candidate_matching.models.jobs import Job  # noqa: E402
