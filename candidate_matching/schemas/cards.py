"""Typed views over the job and resume cards stored as JSON.

Cards come from the document-processing collaborator. Every field is
optional so partially extracted cards still validate; unknown keys are kept.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Card(BaseModel):
    model_config = ConfigDict(extra="allow")


class JobBasics(_Card):
    title: str | None = None
    seniority: str | None = None
    company: str | None = None
    location: str | None = None
    work_mode: Literal["remote", "onsite", "hybrid"] | None = None


class JobRequirements(_Card):
    experience_required: str | None = None
    technical_skills: list[str] = Field(default_factory=list)
    soft_skills: list[str] = Field(default_factory=list)
    nice_to_have: list[str] = Field(default_factory=list)


class ProjectDetails(_Card):
    start_date: str | None = None
    duration: str | None = None
    workload: str | None = None
    rate_band: str | None = None


class JobCard(_Card):
    basics: JobBasics = Field(default_factory=JobBasics)
    overview: str | None = None
    requirements: JobRequirements = Field(default_factory=JobRequirements)
    preferred_skills: list[str] = Field(default_factory=list)
    work_culture: str | None = None
    project_details: ProjectDetails = Field(default_factory=ProjectDetails)

    def skill_requirements(self) -> list[tuple[str, str]]:
        """(label, priority) pairs in card order.

        Technical and soft skills are must-haves; nice_to_have and
        preferred_skills are nice-to-haves.
        """
        pairs: list[tuple[str, str]] = []
        pairs += [(s, "must_have") for s in self.requirements.technical_skills]
        pairs += [(s, "nice_to_have") for s in self.requirements.nice_to_have]
        pairs += [(s, "must_have") for s in self.requirements.soft_skills]
        pairs += [(s, "nice_to_have") for s in self.preferred_skills]
        return [(label, priority) for label, priority in pairs if label and label.strip()]


class PersonalInfo(_Card):
    name: str | None = None
    title: str | None = None
    location: str | None = None
    years_experience: int | None = None


class Availability(_Card):
    status: str | None = None
    commitment: str | None = None
    timezone: str | None = None


class WorkExperience(_Card):
    title: str | None = None
    company: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None
    achievements: list[str] = Field(default_factory=list)


class TechnicalSkill(_Card):
    skill: str
    proficiency: int | None = Field(default=None, ge=0, le=100)


class ResumeCard(_Card):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    professional_summary: str | None = None
    availability: Availability = Field(default_factory=Availability)
    work_experience: list[WorkExperience] = Field(default_factory=list)
    technical_skills: list[TechnicalSkill] = Field(default_factory=list)
    soft_skills: list[str] = Field(default_factory=list)
    all_skills: list[str] = Field(default_factory=list)

    def skill_labels(self) -> list[str]:
        """Distinct skill labels in card order."""
        labels = [s.skill for s in self.technical_skills] + self.soft_skills + self.all_skills
        return list(dict.fromkeys(label for label in labels if label and label.strip()))

    def experience_text(self) -> str:
        """Free text describing work history, used for fuzzy skill evidence."""
        parts: list[str] = []
        if self.professional_summary:
            parts.append(self.professional_summary)
        for exp in self.work_experience:
            parts.extend(p for p in (exp.title, exp.description) if p)
            parts.extend(exp.achievements)
        return "\n".join(parts)


def load_job_card(data: dict[str, Any] | None) -> JobCard:
    return JobCard.model_validate(data or {})


def load_resume_card(data: dict[str, Any] | None) -> ResumeCard:
    return ResumeCard.model_validate(data or {})
