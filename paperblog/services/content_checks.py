import logging
from collections import defaultdict
from typing import Iterable, List, NamedTuple

from paperblog.exceptions import ContentError
from paperblog.schemas.blog import Post
from paperblog.utils import is_url_safe

logger = logging.getLogger(__name__)


class ContentIssue(NamedTuple):
    source: str
    message: str

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


def check_content(posts: Iterable[Post]) -> List[ContentIssue]:
    """Integrity checks across an already parsed content set."""
    issues: List[ContentIssue] = []
    by_slug = defaultdict(list)

    for post in posts:
        by_slug[post.slug].append(post.source)
        if not is_url_safe(post.slug):
            issues.append(ContentIssue(post.source, f"slug {post.slug!r} is not URL-safe"))
        if not post.description.strip():
            issues.append(ContentIssue(post.source, "description is empty"))

    for slug, sources in sorted(by_slug.items()):
        if len(sources) > 1:
            for source in sources:
                others = ", ".join(s for s in sources if s != source)
                issues.append(
                    ContentIssue(source, f"duplicate slug {slug!r} (also used by {others})")
                )

    return issues


def check_directory(service) -> List[ContentIssue]:
    """Parse every post file, collecting per-file errors instead of stopping."""
    issues: List[ContentIssue] = []
    posts = []
    for source in service.repo.list_post_files():
        try:
            posts.append(service.load_post(source))
        except ContentError as e:
            issues.append(ContentIssue(e.source, e.message))

    issues.extend(check_content(posts))
    logger.info(f"Checked {len(posts)} posts, found {len(issues)} issues")
    return issues
