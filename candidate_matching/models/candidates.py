"""Candidate profile (resume) model."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Enum, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from candidate_matching.models.base import Base
from candidate_matching.models.enums import ProcessingStatusEnum


class CandidateProfile(Base):
    """Candidate resume with its extracted resume card."""

    __tablename__ = "candidate_profiles"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    status: Mapped[ProcessingStatusEnum] = mapped_column(
        Enum(ProcessingStatusEnum, name="processing_status_enum"),
        default=ProcessingStatusEnum.PENDING,
    )
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    document_type: Mapped[str] = mapped_column(String(20), default="text")
    document_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    resume_card: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
