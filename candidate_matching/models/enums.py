"""Database enums for the candidate matching schema."""

import enum


class SkillCategoryEnum(str, enum.Enum):
    """Taxonomy bucket a canonical skill belongs to."""

    TECHNICAL = "technical"
    SOFT_SKILL = "soft_skill"
    DOMAIN = "domain"
    TOOL = "tool"
    METHODOLOGY = "methodology"


class AliasSourceEnum(str, enum.Enum):
    """Who proposed an alias mapping."""

    MANUAL = "manual"  # Human-curated
    AI = "ai"  # Suggested by the completion service
    USER_FEEDBACK = "user_feedback"


class EntityTypeEnum(str, enum.Enum):
    """Owner kind of a skill instance."""

    JOB = "job"
    PROFILE = "profile"


class SkillPriorityEnum(str, enum.Enum):
    """Requirement tier of a skill instance.

    Jobs use must_have / nice_to_have (preferred is a legacy synonym of
    nice_to_have); candidate profiles use core.
    """

    MUST_HAVE = "must_have"
    NICE_TO_HAVE = "nice_to_have"
    CORE = "core"
    PREFERRED = "preferred"


class ProcessingStatusEnum(str, enum.Enum):
    """Status of job/resume document processing."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class MatchSessionStatusEnum(str, enum.Enum):
    """Lifecycle of a match session.

    step1_pending is the conceptual state before any row exists; rows are
    written directly as step1_complete (Step-1) or completed (Step-2).
    """

    STEP1_PENDING = "step1_pending"
    STEP1_COMPLETE = "step1_complete"
    STEP2_IN_PROGRESS = "step2_in_progress"
    COMPLETED = "completed"


# Priorities that count toward each scoring tier.
MUST_HAVE_PRIORITIES = frozenset({SkillPriorityEnum.MUST_HAVE, SkillPriorityEnum.CORE})
NICE_TO_HAVE_PRIORITIES = frozenset({SkillPriorityEnum.NICE_TO_HAVE, SkillPriorityEnum.PREFERRED})
