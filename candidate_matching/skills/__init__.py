from candidate_matching.skills.instances import (
    derive_job_skills,
    derive_profile_skills,
    get_instances_by_entity,
    get_skill_instances,
    replace_skill_instances,
)
from candidate_matching.skills.resolver import (
    add_alias,
    clean_skill_label,
    find_skill_by_alias,
    find_skill_by_name,
    get_or_create_skill,
    normalize_skill,
)

__all__ = [
    "add_alias",
    "clean_skill_label",
    "derive_job_skills",
    "derive_profile_skills",
    "find_skill_by_alias",
    "find_skill_by_name",
    "get_instances_by_entity",
    "get_or_create_skill",
    "get_skill_instances",
    "normalize_skill",
    "replace_skill_instances",
]
