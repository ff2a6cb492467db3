import datetime as dt
import textwrap
from pathlib import Path

import pytest

from paperblog.settings import Settings

NOW = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


def fixed_clock():
    return NOW


class FakeRepo:
    """
    Minimal repo stand-in used in service tests.
    """

    def __init__(self, sources):
        self.sources = list(sources)

    def list_post_files(self):
        return list(self.sources)


class FakeParser:
    """
    Minimal content parser stand-in keyed by relative path.
    """

    def __init__(self, content_by_source: dict[str, str]):
        self.content_by_source = content_by_source
        self.written = {}

    def get_markdown_content(self, source: str) -> str:
        raw = self.content_by_source.get(source)
        if raw is None:
            return ""
        return textwrap.dedent(raw).lstrip()

    def write_markdown_content(self, source: str, text: str) -> None:
        self.written[source] = text
        self.content_by_source[source] = text


class FakePostsService:
    """
    Minimal posts service stand-in for router tests.
    """

    def __init__(self, published=None, tags=None):
        self._published = published or []
        self._tags = tags or []

    def published_posts(self, now=None):
        return self._published

    def get_post(self, slug: str):
        return next((p for p in self._published if p.slug == slug), None)

    def tags(self):
        return self._tags

    def posts_by_tag(self, tag: str):
        return [p for p in self._published if tag in p.tag_slugs]


def post_markdown(
    title: str = "Hello World",
    *,
    datetime: str = "2024-01-15T10:00:00Z",
    body: str = "Some body text.",
    **extra,
) -> str:
    """Render a post file the way an author would write it."""
    meta = {
        "title": title,
        "author": "Jane Doe",
        "pubDatetime": datetime,
        "description": f"About {title}",
        **extra,
    }
    lines = ["---"]
    for key, value in meta.items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, list):
            value = "[" + ", ".join(value) + "]"
        lines.append(f"{key}: {value}")
    lines.append("---")
    lines.append("")
    lines.append(body)
    return "\n".join(lines) + "\n"


def write_post(root: Path, name: str, text: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def site_settings(tmp_path) -> Settings:
    content = tmp_path / "content"
    content.mkdir()
    return Settings(
        CONTENT_DIR=str(content),
        PUBLIC_DIR=str(tmp_path / "public"),
        OUTPUT_DIR=str(tmp_path / "dist"),
        SITE_URL="https://blog.example.com/",
        SITE_TITLE="Example Blog",
        SITE_AUTHOR="Jane Doe",
        POSTS_PER_INDEX=2,
        POSTS_PER_PAGE=2,
    )
