import datetime as dt
import logging
import math
from itertools import groupby
from pathlib import Path
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence
from zoneinfo import ZoneInfo

import frontmatter
from pydantic import ValidationError

from paperblog.exceptions import ContentError
from paperblog.schemas.blog import (
    ArchiveGroup,
    Page,
    Post,
    PostDetail,
    PostFrontmatter,
    PostSummary,
    TagSummary,
)
from paperblog.utils import calculate_reading_time, make_slug, tag_slug

logger = logging.getLogger(__name__)


class PostSelection(NamedTuple):
    published: List[Post]
    drafts: List[Post]
    scheduled: List[Post]


class PostsService:
    def __init__(
        self,
        repo,
        parser,
        settings,
        *,
        strict: bool = True,
        include_scheduled: bool = False,
        clock: Optional[Callable[[], dt.datetime]] = None,
    ):
        self.repo = repo
        self.parser = parser
        self.settings = settings
        self.strict = strict
        self.include_scheduled = include_scheduled
        self.clock = clock or (lambda: dt.datetime.now(dt.timezone.utc))
        self._posts: Optional[List[Post]] = None

    def load_posts(self) -> List[Post]:
        """Parse every post file, drafts included."""
        if self._posts is not None:
            return self._posts

        posts = []
        for source in self.repo.list_post_files():
            try:
                posts.append(self.load_post(source))
            except ContentError as e:
                if self.strict:
                    raise
                logger.warning(f"Skipping {source}: {e.message}")
        logger.debug(f"Loaded {len(posts)} posts from {self.settings.CONTENT_DIR}")
        self._posts = posts
        return posts

    def select(self, now: Optional[dt.datetime] = None) -> PostSelection:
        now = now or self.clock()
        published, drafts, scheduled = [], [], []
        for post in self.load_posts():
            if post.draft:
                drafts.append(post)
            elif is_published(
                post, now, self.settings.scheduled_margin, self.include_scheduled
            ):
                published.append(post)
            else:
                scheduled.append(post)
        return PostSelection(sort_posts(published), drafts, scheduled)

    def published_posts(self, now: Optional[dt.datetime] = None) -> List[Post]:
        return self.select(now).published

    def get_post(self, slug: str) -> Optional[Post]:
        return next((p for p in self.published_posts() if p.slug == slug), None)

    def featured_posts(self, now: Optional[dt.datetime] = None) -> List[Post]:
        return [p for p in self.published_posts(now) if p.featured]

    def recent_posts(self, now: Optional[dt.datetime] = None) -> List[Post]:
        return [p for p in self.published_posts(now) if not p.featured]

    def tags(self, now: Optional[dt.datetime] = None) -> List[TagSummary]:
        return group_tags(self.published_posts(now))

    def posts_by_tag(self, tag: str, now: Optional[dt.datetime] = None) -> List[Post]:
        return filter_by_tag(self.published_posts(now), tag)

    def archives(self, now: Optional[dt.datetime] = None) -> List[ArchiveGroup]:
        return group_archives(self.published_posts(now))

    def load_post(self, source: str) -> Post:
        text = self.parser.get_markdown_content(source)
        return parse_post(
            text,
            source,
            default_author=self.settings.SITE_AUTHOR,
            timezone=self.settings.TIMEZONE,
        )


def parse_post(
    text: str, source: str, *, default_author: str = "", timezone: str = "UTC"
) -> Post:
    """Parse frontmatter and body of one post file into a Post."""
    if not text.strip():
        raise ContentError(source, "file is empty")

    try:
        parsed = frontmatter.loads(text)
    except Exception as e:
        raise ContentError(source, f"malformed frontmatter: {e}") from e

    metadata = dict(parsed.metadata or {})
    if not metadata.get("author") and default_author:
        metadata["author"] = default_author

    try:
        meta = PostFrontmatter.model_validate(metadata)
    except ValidationError as e:
        raise ContentError(source, _describe_errors(e)) from e

    body = parsed.content
    if not body.strip():
        raise ContentError(source, "post body is empty")

    slug = _derive_slug(meta.slug, source)
    if not slug:
        raise ContentError(source, "slug is empty after normalization")

    tz = ZoneInfo(timezone)
    return Post(
        source=source,
        slug=slug,
        title=meta.title,
        author=meta.author,
        datetime=_localize(meta.datetime, tz),
        mod_datetime=_localize(meta.mod_datetime, tz) if meta.mod_datetime else None,
        featured=meta.featured,
        draft=meta.draft,
        tags=meta.tags,
        description=meta.description,
        og_image=meta.og_image,
        canonical_url=meta.canonical_url,
        body=body,
        reading_time=calculate_reading_time(body),
    )


def is_published(
    post: Post,
    now: dt.datetime,
    margin: dt.timedelta,
    include_scheduled: bool = False,
) -> bool:
    if post.draft:
        return False
    return include_scheduled or post.datetime < now + margin


def sort_posts(posts: Iterable[Post]) -> List[Post]:
    """Newest first; posts sharing a timestamp fall back to slug order."""
    by_slug = sorted(posts, key=lambda p: p.slug)
    return sorted(by_slug, key=lambda p: p.datetime, reverse=True)


def group_tags(posts: Iterable[Post]) -> List[TagSummary]:
    """Count posts per tag slug; the first spelling seen names the tag."""
    found: dict[str, TagSummary] = {}
    for post in posts:
        seen = set()
        for name, slug in zip(post.tags, post.tag_slugs):
            if slug in seen:
                continue
            seen.add(slug)
            if slug in found:
                found[slug].count += 1
            else:
                found[slug] = TagSummary(name=name, slug=slug, count=1)
    return [found[slug] for slug in sorted(found)]


def filter_by_tag(posts: Iterable[Post], tag: str) -> List[Post]:
    wanted = tag_slug(tag)
    return [p for p in posts if wanted in p.tag_slugs]


def group_archives(posts: Iterable[Post]) -> List[ArchiveGroup]:
    # Input is expected newest first, so groups come out newest first too
    return [
        ArchiveGroup(year=year, month=month, posts=list(group))
        for (year, month), group in groupby(
            posts, key=lambda p: (p.datetime.year, p.datetime.month)
        )
    ]


def paginate(
    items: Sequence, per_page: int, page: int = 1, base_url: str = "/"
) -> Optional[Page]:
    total_pages = max(1, math.ceil(len(items) / per_page))
    if page < 1 or page > total_pages:
        return None
    start = (page - 1) * per_page
    return Page(
        items=list(items[start : start + per_page]),
        number=page,
        total_pages=total_pages,
        base_url=base_url,
    )


def to_summary(post: Post) -> PostSummary:
    return PostSummary(
        id=post.source,
        slug=post.slug,
        title=post.title,
        author=post.author,
        description=post.description,
        publishedAt=post.datetime.isoformat(),
        updatedAt=post.mod_datetime.isoformat() if post.mod_datetime else None,
        tags=post.tags,
        readingTime=post.reading_time,
        featured=post.featured,
        draft=post.draft,
    )


def to_detail(post: Post, html: str) -> PostDetail:
    return PostDetail(**to_summary(post).model_dump(), content=post.body, html=html)


def _derive_slug(explicit: Optional[str], source: str) -> str:
    if explicit:
        slug = make_slug(explicit)
        if slug != explicit:
            logger.warning(f"{source}: slug {explicit!r} normalized to {slug!r}")
        return slug
    return make_slug(Path(source).stem)


def _localize(value: dt.datetime, tz: ZoneInfo) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        field = ".".join(str(loc) for loc in err["loc"]) or "frontmatter"
        parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)
