"""Deep candidate analysis LLM operation.

Evaluates one candidate profile against one job and returns a contextual
0-100 score with a narrative explanation, quoted evidence, strengths and
concerns.

Bump PROMPT_VERSION when changing the prompt.
"""

from typing import TYPE_CHECKING

from candidate_matching.llm.operations.common import response_json
from candidate_matching.models.candidates import CandidateProfile
from candidate_matching.models.jobs import Job
from candidate_matching.schemas.cards import load_job_card, load_resume_card
from candidate_matching.schemas.matching import CandidateAnalysis

if TYPE_CHECKING:
    from candidate_matching.resources.openrouter import OpenRouterResource

PROMPT_VERSION = "1.0.0"

# Use a more capable model for reasoning/scoring tasks
DEFAULT_MODEL = "openai/gpt-4o"

# Characters of original document text included per side
SOURCE_TEXT_BUDGET = 2000

SYSTEM_PROMPT = """You are an expert technical recruiter and talent matcher. Your job is to deeply analyze how well a candidate fits a job requirement.

You must provide:
1. A match score (0-100) where:
   - 90-100: Exceptional fit, rare to find better
   - 75-89: Strong fit, highly recommended
   - 60-74: Good fit, worth interviewing
   - 40-59: Moderate fit, has gaps but potential
   - 0-39: Poor fit, significant misalignment

2. Detailed explanation analyzing:
   - Technical skills alignment
   - Experience level match
   - Domain expertise fit
   - Soft skills compatibility
   - Cultural fit indicators

3. Evidence: Specific quotes from both job description and resume that support your assessment

4. Concerns: Red flags or gaps that could be issues

5. Strengths: Key reasons why this candidate stands out

6. Confidence: How confident you are in this assessment (0.0-1.0)

Be honest, specific, and cite evidence. Don't be overly optimistic - highlight real concerns.

Return JSON with:
{
  "match_score": <integer 0-100>,
  "explanation": "detailed explanation",
  "evidence": [
    {
      "category": "technical_skills" | "experience" | "domain" | "soft_skills" | "availability",
      "job_quote": "exact quote from job",
      "resume_quote": "exact quote from resume",
      "assessment": "how this evidence impacts the match"
    }
  ],
  "concerns": ["concern 1", "concern 2"],
  "strengths": ["strength 1", "strength 2"],
  "confidence": <0.0 to 1.0>
}"""


def _or_na(value) -> str:
    if value is None or value == "" or value == []:
        return "N/A"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def build_user_prompt(job: Job, profile: CandidateProfile) -> str:
    """Render the job and candidate into the structured analysis payload."""
    job_card = load_job_card(job.job_card)
    resume_card = load_resume_card(profile.resume_card)
    basics = job_card.basics
    reqs = job_card.requirements
    project = job_card.project_details
    person = resume_card.personal_info

    skills_text = "\n".join(
        f"- {s.skill}" + (f" ({s.proficiency}%)" if s.proficiency is not None else "")
        for s in resume_card.technical_skills
    )
    experience_text = "\n\n".join(
        f"- {exp.title or '?'} at {exp.company or '?'} "
        f"({exp.start_date or '?'} - {exp.end_date or 'present'})\n  {exp.description or ''}"
        for exp in resume_card.work_experience
    )

    return f"""**JOB DESCRIPTION**

Title: {_or_na(basics.title)}
Company: {_or_na(basics.company)}
Location: {_or_na(basics.location)} ({_or_na(basics.work_mode)})

Overview: {_or_na(job_card.overview)}

Requirements:
- Experience Required: {_or_na(reqs.experience_required)}
- Technical Skills: {_or_na(reqs.technical_skills)}
- Soft Skills: {_or_na(reqs.soft_skills)}
- Nice to Have: {_or_na(reqs.nice_to_have + job_card.preferred_skills)}

Project Details:
- Start Date: {_or_na(project.start_date)}
- Duration: {_or_na(project.duration)}
- Rate Band: {_or_na(project.rate_band)}

Original Job Text:
{job.original_text[:SOURCE_TEXT_BUDGET]}

---

**CANDIDATE RESUME**

Name: {_or_na(person.name)}
Title: {_or_na(person.title)}
Location: {_or_na(person.location)}
Years Experience: {_or_na(person.years_experience)}

Professional Summary:
{_or_na(resume_card.professional_summary)}

Technical Skills:
{skills_text or "N/A"}

Work Experience:
{experience_text or "N/A"}

Availability:
{_or_na(resume_card.availability.status)} - {_or_na(resume_card.availability.commitment)}

Original Resume Text:
{profile.original_text[:SOURCE_TEXT_BUDGET]}"""


async def analyze_candidate(
    openrouter: "OpenRouterResource",
    job: Job,
    profile: CandidateProfile,
    model: str | None = None,
) -> CandidateAnalysis:
    """Score one candidate against one job.

    Raises:
        httpx.HTTPError: transport failure
        ValueError: unparseable or schema-invalid response
    """
    response = await openrouter.complete(
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_prompt(job, profile)},
        ],
        model=model or DEFAULT_MODEL,
        operation="analyze_candidate",
        response_format={"type": "json_object"},
        temperature=0.3,
    )
    return CandidateAnalysis.model_validate(response_json(response))
