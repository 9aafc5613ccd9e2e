"""Static description of every content table and where its assets live."""

from __future__ import annotations

from foliocms.core.errors import ValidationError
from foliocms.domain.models.content import ContentTable

_TABLES: tuple[ContentTable, ...] = (
    ContentTable(
        name="hero_content",
        label="Hero",
        columns=("main_name", "subtitles", "social_media_links"),
        json_columns=("subtitles", "social_media_links"),
        timestamp_column="updated_at",
        singleton_id="primary_hero_content",
        order_by="updated_at DESC",
    ),
    ContentTable(
        name="about_content",
        label="About",
        columns=(
            "headline_main",
            "headline_code_keyword",
            "headline_connector",
            "headline_creativity_keyword",
            "paragraph1",
            "paragraph2",
            "paragraph3",
            "image_url",
            "image_tagline",
        ),
        asset_column="image_url",
        bucket="about-images",
        timestamp_column="updated_at",
        singleton_id="main_about_content",
        order_by="updated_at DESC",
    ),
    ContentTable(
        name="projects",
        label="Projects",
        columns=("title", "description", "image_url", "live_demo_url", "repo_url", "tags", "status", "progress"),
        asset_column="image_url",
        bucket="project-images",
        object_prefix="projects/",
        json_columns=("tags",),
    ),
    ContentTable(
        name="project_views",
        label="Project views",
        columns=("project_id", "viewer_identifier"),
        timestamp_column="viewed_at",
        order_by="viewed_at DESC",
        public=False,
    ),
    ContentTable(
        name="skill_categories",
        label="Skill categories",
        columns=("name", "icon_image_url", "sort_order"),
        asset_column="icon_image_url",
        bucket="category-icons",
        order_by="sort_order ASC, created_at ASC",
    ),
    ContentTable(
        name="skills",
        label="Skills",
        columns=("name", "icon_image_url", "description", "category_id"),
        asset_column="icon_image_url",
        bucket="skill-icons",
        order_by="name ASC",
    ),
    ContentTable(
        name="skill_interactions",
        label="Skill interactions",
        columns=("skill_id", "interaction_type", "viewer_identifier"),
        timestamp_column="interacted_at",
        order_by="interacted_at DESC",
        public=False,
    ),
    ContentTable(
        name="timeline_events",
        label="Timeline",
        columns=("date", "title", "description", "icon_image_url", "type", "sort_order"),
        order_by="sort_order ASC, date DESC",
    ),
    ContentTable(
        name="certifications",
        label="Certifications",
        columns=("title", "issuer", "date", "image_url", "verify_url"),
        asset_column="image_url",
        bucket="certification-images",
        object_prefix="cert_",
        order_by="date DESC",
    ),
    ContentTable(
        name="resume_meta",
        label="Resume",
        columns=("description", "resume_pdf_url"),
        asset_column="resume_pdf_url",
        bucket="resume-pdfs",
        timestamp_column="updated_at",
        singleton_id="main_resume_meta",
        order_by="updated_at DESC",
    ),
    ContentTable(
        name="resume_experience",
        label="Resume experience",
        columns=("job_title", "company_name", "date_range", "description_points", "icon_image_url", "sort_order"),
        asset_column="icon_image_url",
        bucket="resume-section-icons",
        object_prefix="experience/",
        json_columns=("description_points",),
        order_by="sort_order ASC, created_at DESC",
    ),
    ContentTable(
        name="resume_education",
        label="Resume education",
        columns=("degree_or_certification", "institution_name", "date_range", "description", "icon_image_url", "sort_order"),
        asset_column="icon_image_url",
        bucket="resume-section-icons",
        object_prefix="education/",
        order_by="sort_order ASC, created_at DESC",
    ),
    ContentTable(
        name="resume_key_skill_categories",
        label="Resume key skill categories",
        columns=("category_name", "icon_image_url", "sort_order"),
        asset_column="icon_image_url",
        bucket="resume-section-icons",
        object_prefix="key-skills/",
        order_by="sort_order ASC, created_at ASC",
    ),
    ContentTable(
        name="resume_key_skills",
        label="Resume key skills",
        columns=("skill_name", "category_id"),
        timestamp_column=None,
        order_by="skill_name ASC",
    ),
    ContentTable(
        name="resume_languages",
        label="Resume languages",
        columns=("language_name", "proficiency", "icon_image_url", "sort_order"),
        asset_column="icon_image_url",
        bucket="resume-section-icons",
        object_prefix="languages/",
        order_by="sort_order ASC, created_at ASC",
    ),
    ContentTable(
        name="contact_page_details",
        label="Contact details",
        columns=("address", "phone", "phone_href", "email", "email_href"),
        timestamp_column="updated_at",
        singleton_id="main_contact_details",
        order_by="updated_at DESC",
    ),
    ContentTable(
        name="social_links",
        label="Social links",
        columns=("label", "icon_image_url", "url", "display_text", "sort_order"),
        order_by="sort_order ASC, created_at ASC",
    ),
    ContentTable(
        name="contact_submissions",
        label="Contact submissions",
        columns=("name", "email", "subject", "message", "phone_number", "status", "is_starred", "notes"),
        bool_columns=("is_starred",),
        timestamp_column="submitted_at",
        order_by="submitted_at DESC",
        public=False,
    ),
    ContentTable(
        name="legal_documents",
        label="Legal documents",
        columns=("title", "content"),
        timestamp_column="updated_at",
        order_by="title ASC",
        keyed=True,
    ),
    ContentTable(
        name="admin_profile",
        label="Admin profile",
        columns=("profile_photo_url",),
        asset_column="profile_photo_url",
        bucket="admin-profile-photos",
        timestamp_column="updated_at",
        singleton_id="main_admin_profile",
        order_by="updated_at DESC",
        public=False,
    ),
)

CONTENT_TABLES: dict[str, ContentTable] = {table.name: table for table in _TABLES}


def get_content_table(name: str) -> ContentTable:
    table = CONTENT_TABLES.get(name)
    if table is None:
        raise ValidationError(f"Unknown content table: {name}")
    return table


def asset_buckets() -> set[str]:
    return {table.bucket for table in _TABLES if table.bucket}
