"""Catalog of resource groups: the unit an administrator selects for bulk deletion.

Each group lists every table and bucket a purge of that section must touch. The
storage doctor cross-checks this catalog against the schema and the content
catalog, since a missing entry here would otherwise go unnoticed.
"""

from __future__ import annotations

from collections.abc import Iterable

from foliocms.core.errors import UnknownResourceGroupError
from foliocms.domain.models.resource_group import ResourceGroup

_GROUPS: tuple[ResourceGroup, ...] = (
    ResourceGroup(key="hero", label="Hero Section", tables=("hero_content",)),
    ResourceGroup(
        key="about",
        label="About Section",
        tables=("about_content",),
        buckets=("about-images",),
    ),
    ResourceGroup(
        key="projects",
        label="Projects",
        tables=("projects", "project_views"),
        buckets=("project-images",),
    ),
    ResourceGroup(
        key="skills",
        label="Skills",
        tables=("skill_categories", "skills", "skill_interactions"),
        buckets=("category-icons", "skill-icons"),
    ),
    ResourceGroup(key="timeline", label="Journey Timeline", tables=("timeline_events",)),
    ResourceGroup(
        key="certifications",
        label="Certifications",
        tables=("certifications",),
        buckets=("certification-images",),
    ),
    ResourceGroup(
        key="resume",
        label="Resume",
        tables=(
            "resume_meta",
            "resume_experience",
            "resume_education",
            "resume_key_skill_categories",
            "resume_key_skills",
            "resume_languages",
        ),
        buckets=("resume-pdfs", "resume-section-icons"),
    ),
    ResourceGroup(
        key="contact",
        label="Contact Information",
        tables=("contact_page_details", "social_links", "contact_submissions"),
    ),
    ResourceGroup(key="legal", label="Legal Documents", tables=("legal_documents",)),
    ResourceGroup(
        key="admin_profile",
        label="Admin Profile",
        tables=("admin_profile",),
        buckets=("admin-profile-photos",),
    ),
    ResourceGroup(key="activity_log", label="Admin Activity Log", tables=("admin_activity_log",)),
)

_BY_KEY: dict[str, ResourceGroup] = {group.key: group for group in _GROUPS}


def all_groups() -> list[ResourceGroup]:
    return list(_GROUPS)


def groups_by_keys(keys: Iterable[str]) -> list[ResourceGroup]:
    """Return the groups for ``keys`` in catalog order.

    Every key must be known; a typo aborts the whole lookup instead of silently
    dropping that group.
    """
    wanted = {str(key) for key in keys}
    unknown = sorted(key for key in wanted if key not in _BY_KEY)
    if unknown:
        raise UnknownResourceGroupError(unknown)
    return [group for group in _GROUPS if group.key in wanted]


def group_for_table(table: str) -> ResourceGroup | None:
    for group in _GROUPS:
        if table in group.tables:
            return group
    return None


def tables_for_keys(keys: Iterable[str]) -> list[str]:
    return [table for group in groups_by_keys(keys) for table in group.tables]
