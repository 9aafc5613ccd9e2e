import pytest

from foliocms.core.asset_urls import parse_storage_path, resolve_path
from foliocms.core.errors import ReferenceResolutionFailure

BASE = "http://127.0.0.1:8765/storage/v1/object/public"


def test_parse_storage_path_returns_path_after_bucket_segment() -> None:
    url = f"{BASE}/project-images/projects/1718000000000-3fa2b1c4.png"
    assert parse_storage_path(url, "project-images") == "projects/1718000000000-3fa2b1c4.png"


def test_parse_storage_path_unquotes_percent_encoding() -> None:
    url = f"{BASE}/about-images/my%20photo.jpg"
    assert parse_storage_path(url, "about-images") == "my photo.jpg"


def test_parse_storage_path_accepts_object_names_starting_with_http() -> None:
    url = f"{BASE}/hero-images/http-banner.png"
    assert parse_storage_path(url, "hero-images") == "http-banner.png"
    assert resolve_path(f"{BASE}/hero-images/https-logo/a.png", "hero-images") == "https-logo/a.png"


@pytest.mark.parametrize(
    "url",
    [
        "",
        "   ",
        "not a url",
        "ftp://example.com/project-images/a.png",
        "https://cdn.example.com/images/a.png",
        f"{BASE}/project-images/",
        f"{BASE}/project-images/../secret.txt",
        f"{BASE}/project-images/https://evil.example.com/a.png",
    ],
)
def test_parse_storage_path_rejects_urls_outside_bucket(url: str) -> None:
    with pytest.raises(ReferenceResolutionFailure):
        parse_storage_path(url, "project-images")


def test_parse_storage_path_rejects_other_bucket() -> None:
    with pytest.raises(ReferenceResolutionFailure):
        parse_storage_path(f"{BASE}/skill-icons/a.png", "project-images")


def test_resolve_path_never_raises() -> None:
    assert resolve_path(None, "project-images") is None
    assert resolve_path("", "project-images") is None
    assert resolve_path("https://cdn.example.com/a.png", "project-images") is None
    assert resolve_path(f"{BASE}/project-images/a.png", "project-images") == "a.png"
