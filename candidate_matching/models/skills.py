"""Skills taxonomy models: canonical skills, aliases and per-entity instances."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from candidate_matching.models.base import Base
from candidate_matching.models.enums import (
    AliasSourceEnum,
    EntityTypeEnum,
    SkillCategoryEnum,
    SkillPriorityEnum,
)


class Skill(Base):
    """Canonical skill in the taxonomy.

    Skills are created lazily the first time a novel label is seen and are
    never deleted. Example: "JavaScript" is canonical, "js" and "javascript es6"
    are aliases.
    """

    __tablename__ = "skills"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Skill identity
    name: Mapped[str] = mapped_column(Text, nullable=False)  # "JavaScript"
    normalized_name: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True
    )  # "javascript"
    category: Mapped[SkillCategoryEnum] = mapped_column(
        Enum(SkillCategoryEnum, name="skill_category_enum"),
        default=SkillCategoryEnum.TECHNICAL,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    created_by: Mapped[str] = mapped_column(String(50), default="llm")  # seed, llm, fallback, manual

    # Relationships
    aliases: Mapped[list["SkillAlias"]] = relationship("SkillAlias", back_populates="skill")


class SkillAlias(Base):
    """Normalized raw label mapped to a canonical skill.

    Example: "js" -> JavaScript, "reactjs" -> React
    """

    __tablename__ = "skill_aliases"
    __table_args__ = (
        UniqueConstraint("alias", "skill_id", name="uq_skill_alias_pair"),
        Index("ix_skill_aliases_alias", "alias"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    alias: Mapped[str] = mapped_column(String(255), nullable=False)

    skill_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
    )
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    source: Mapped[AliasSourceEnum] = mapped_column(
        Enum(AliasSourceEnum, name="alias_source_enum"),
        default=AliasSourceEnum.MANUAL,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    skill: Mapped["Skill"] = relationship("Skill", back_populates="aliases")


class SkillInstance(Base):
    """One occurrence of a canonical skill on a job posting or candidate profile.

    Instances are immutable. The set for one entity is replaced wholesale when
    it is re-derived from the entity's card.
    """

    __tablename__ = "skill_instances"
    __table_args__ = (
        Index("ix_skill_instances_entity", "entity_type", "entity_id"),
        Index("ix_skill_instances_skill", "skill_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Owner
    entity_type: Mapped[EntityTypeEnum] = mapped_column(
        Enum(EntityTypeEnum, name="entity_type_enum"), nullable=False
    )
    entity_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)

    skill_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
    )
    raw_label: Mapped[str] = mapped_column(Text, nullable=False)  # As originally written
    level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    years_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    priority: Mapped[SkillPriorityEnum | None] = mapped_column(
        Enum(SkillPriorityEnum, name="skill_priority_enum"), nullable=True
    )
    extraction_confidence: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    evidence_pointer: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # Order on the card

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    skill: Mapped["Skill"] = relationship("Skill")
