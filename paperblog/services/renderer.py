"""Markdown and page rendering.

Post bodies go through markdown-it; pages are Jinja2 templates living in
``paperblog/templates`` unless a site supplies its own directory.
"""

import calendar
import datetime as dt
import logging
import re
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markdown_it import MarkdownIt

from paperblog.schemas.blog import ArchiveGroup, Page, Post, TagSummary
from paperblog.utils import make_slug, tag_slug

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
ASSETS_URL = "/assets"
IMAGES_URL = f"{ASSETS_URL}/images"

OBSIDIAN_IMAGE_PATTERN = re.compile(r"!\[\[([^\]]+\.(?:png|jpg|jpeg|gif|svg|webp))\]\]")
ABSOLUTE_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(\s*/img/([^)\s]+)\s*\)")


def _heading_open(self, tokens, idx, options, env):
    token = tokens[idx]
    text = tokens[idx + 1].content if idx + 1 < len(tokens) else ""
    slug = make_slug(text) or "section"

    # Repeated headings get -1, -2, ... like GitHub
    seen = env.setdefault("heading_ids", {})
    count = seen.get(slug, 0)
    seen[slug] = count + 1
    token.attrSet("id", f"{slug}-{count}" if count else slug)
    return self.renderToken(tokens, idx, options, env)


_md = (
    MarkdownIt("commonmark", {"html": True, "typographer": False})
    .enable("table")
    .enable("strikethrough")
)
_md.add_render_rule("heading_open", _heading_open)


def render_markdown(text: str) -> str:
    """Render markdown content to HTML."""
    return _md.render(text, {}).strip()


def process_image_references(content: str, base_url: str = IMAGES_URL) -> str:
    """
    Point Obsidian embeds and /img/ paths at the site image directory
    """
    base_url = base_url.rstrip("/")
    content = OBSIDIAN_IMAGE_PATTERN.sub(lambda m: f"![]({base_url}/{m.group(1)})", content)
    content = ABSOLUTE_IMAGE_PATTERN.sub(
        lambda m: f"![{m.group(1)}]({base_url}/{m.group(2)})", content
    )
    return content


def render_post_html(post: Post) -> str:
    return render_markdown(process_image_references(post.body))


def format_datetime(value: Optional[dt.datetime], fmt: str = "%d %b, %Y") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


def isoformat(value: Optional[dt.datetime]) -> str:
    return value.isoformat() if value else ""


def month_name(value: int) -> str:
    return calendar.month_name[value]


class SiteRenderer:
    def __init__(self, settings, templates_dir: Path | str | None = None):
        self.settings = settings
        self.templates_dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR
        self.env = Environment(
            loader=FileSystemLoader(
                [str(self.templates_dir), str(DEFAULT_TEMPLATES_DIR)]
            ),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["format_datetime"] = format_datetime
        self.env.filters["isoformat"] = isoformat
        self.env.filters["tag_slug"] = tag_slug
        self.env.filters["month_name"] = month_name
        self.env.globals["site"] = self._site_context()

    def _site_context(self) -> dict:
        return {
            "title": self.settings.SITE_TITLE,
            "description": self.settings.SITE_DESCRIPTION,
            "author": self.settings.SITE_AUTHOR,
            "url": self.settings.site_base_url,
            "lang": self.settings.SITE_LANG,
            "show_archives": self.settings.SHOW_ARCHIVES,
        }

    def render(self, template: str, **context) -> str:
        logger.debug(f"Rendering {template}")
        return self.env.get_template(template).render(**context)

    def index(self, featured: List[Post], recent: List[Post], has_more: bool) -> str:
        return self.render(
            "index.html", featured=featured, recent=recent, has_more=has_more
        )

    def posts_page(self, page: Page) -> str:
        return self.render("posts.html", page=page)

    def post(
        self,
        post: Post,
        html: str,
        prev_post: Optional[Post] = None,
        next_post: Optional[Post] = None,
    ) -> str:
        return self.render(
            "post.html",
            post=post,
            content=html,
            prev_post=prev_post,
            next_post=next_post,
            canonical_url=post.canonical_url
            or f"{self.settings.site_base_url}{post.url}",
        )

    def tags_index(self, tags: List[TagSummary]) -> str:
        return self.render("tags.html", tags=tags)

    def tag_page(self, tag: TagSummary, page: Page) -> str:
        return self.render("tag.html", tag=tag, page=page)

    def archives(self, groups: List[ArchiveGroup]) -> str:
        return self.render("archives.html", groups=groups)

    def not_found(self) -> str:
        return self.render("404.html")
