import datetime as dt
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from paperblog.exceptions import BuildError
from paperblog.schemas.blog import Post, TagSummary
from paperblog.services import feed_service
from paperblog.services.posts_service import paginate
from paperblog.services.renderer import render_post_html

logger = logging.getLogger(__name__)

BUNDLED_STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


class BuildReport(BaseModel):
    published: int = 0
    drafts: int = 0
    scheduled: int = 0
    files: List[str] = Field(default_factory=list)


class SiteBuilder:
    def __init__(self, service, renderer, settings):
        self.service = service
        self.renderer = renderer
        self.settings = settings
        self.output = settings.output_path
        self._report = BuildReport()
        self._sitemap: List[Tuple[str, Optional[dt.datetime]]] = []

    def build(self, now: Optional[dt.datetime] = None) -> BuildReport:
        now = now or self.service.clock()
        selection = self.service.select(now)
        posts = selection.published
        self._report = BuildReport(
            published=len(posts),
            drafts=len(selection.drafts),
            scheduled=len(selection.scheduled),
        )
        self._sitemap = []

        self._reset_output()
        self._copy_static()

        self._write_index(posts, now)
        self._write_listing(posts, "/posts/", lambda page: self.renderer.posts_page(page))
        self._write_posts(posts)
        self._write_tags(now)
        if self.settings.SHOW_ARCHIVES:
            self._write("archives/index.html", self.renderer.archives(self.service.archives(now)))
            self._sitemap.append(("/archives/", None))
        self._write("404.html", self.renderer.not_found())

        self._write("rss.xml", feed_service.build_rss(posts, self.settings))
        self._write("search.json", feed_service.build_search_index(posts))
        self._write("sitemap.xml", feed_service.build_sitemap(self._sitemap, self.settings))
        self._write("robots.txt", feed_service.build_robots(self.settings))

        logger.info(
            f"Built {self._report.published} posts into {self.output} "
            f"({len(self._report.files)} files, {self._report.drafts} drafts skipped, "
            f"{self._report.scheduled} scheduled)"
        )
        return self._report

    def _write_index(self, posts: Sequence[Post], now: dt.datetime) -> None:
        per_index = self.settings.POSTS_PER_INDEX
        featured = self.service.featured_posts(now)
        recent = self.service.recent_posts(now)[:per_index]
        self._write(
            "index.html",
            self.renderer.index(featured, recent, has_more=len(posts) > per_index),
        )
        self._sitemap.append(("/", None))

    def _write_listing(self, posts: Sequence[Post], base_url: str, render) -> None:
        page_number = 1
        while True:
            page = paginate(posts, self.settings.POSTS_PER_PAGE, page_number, base_url)
            if page is None:
                break
            path = base_url if page_number == 1 else f"{base_url}{page_number}/"
            self._write_page(path, render(page))
            page_number += 1

    def _write_posts(self, posts: Sequence[Post]) -> None:
        for index, post in enumerate(posts):
            # Listing is newest first: the next (newer) post sits before this one
            next_post = posts[index - 1] if index > 0 else None
            prev_post = posts[index + 1] if index + 1 < len(posts) else None
            html = self.renderer.post(post, render_post_html(post), prev_post, next_post)
            self._write_page(post.url, html, lastmod=post.mod_datetime or post.datetime)

    def _write_tags(self, now: dt.datetime) -> None:
        tags = self.service.tags(now)
        self._write_page("/tags/", self.renderer.tags_index(tags))
        for tag in tags:
            self._write_tag(tag, self.service.posts_by_tag(tag.slug, now))

    def _write_tag(self, tag: TagSummary, posts: Sequence[Post]) -> None:
        self._write_listing(
            posts, f"/tags/{tag.slug}/", lambda page: self.renderer.tag_page(tag, page)
        )

    def _write_page(
        self, url_path: str, html: str, lastmod: Optional[dt.datetime] = None
    ) -> None:
        self._write(f"{url_path.strip('/')}/index.html".lstrip("/"), html)
        self._sitemap.append((url_path, lastmod))

    def _write(self, relative: str, text: str) -> None:
        if relative in self._report.files:
            raise BuildError(f"Two pages map to the same output file: {relative}")
        path = self.output / relative
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise BuildError(f"Failed to write {path}: {e}") from e
        self._report.files.append(relative)
        logger.debug(f"Wrote {relative}")

    def _reset_output(self) -> None:
        output = self.output.resolve()
        protected = {
            Path.cwd().resolve(),
            self.settings.content_path.resolve(),
            self.settings.public_path.resolve(),
        }
        if output in protected or any(output in p.parents for p in protected):
            raise BuildError(f"Refusing to clean output directory {output}")
        if output.exists():
            shutil.rmtree(output)
        output.mkdir(parents=True)

    def _copy_static(self) -> None:
        # Site files in PUBLIC_DIR win over the bundled stylesheet
        for source in (BUNDLED_STATIC_DIR, self.settings.public_path):
            if not source.is_dir():
                continue
            try:
                shutil.copytree(source, self.output, dirs_exist_ok=True)
            except OSError as e:
                raise BuildError(f"Failed to copy {source}: {e}") from e
            logger.debug(f"Copied static files from {source}")
