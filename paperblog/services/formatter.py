import logging
from typing import List

import frontmatter
import yaml
from frontmatter.default_handlers import YAMLHandler

from paperblog.exceptions import ContentError

logger = logging.getLogger(__name__)

TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"

CANONICAL_KEYS = [
    "title",
    "author",
    "pubDatetime",
    "datetime",
    "modDatetime",
    "slug",
    "postSlug",
    "featured",
    "draft",
    "tags",
    "ogImage",
    "description",
    "canonicalURL",
]


class RawTimestamp(str):
    """A YAML timestamp kept exactly as it was written."""


class _RawTimestampLoader(yaml.SafeLoader):
    pass


class _RawTimestampDumper(yaml.SafeDumper):
    pass


def _construct_raw_timestamp(loader, node):
    return RawTimestamp(loader.construct_scalar(node))


def _represent_raw_timestamp(dumper, data):
    return dumper.represent_scalar(TIMESTAMP_TAG, str(data))


_RawTimestampLoader.add_constructor(TIMESTAMP_TAG, _construct_raw_timestamp)
_RawTimestampDumper.add_representer(RawTimestamp, _represent_raw_timestamp)


class OrderingYAMLHandler(YAMLHandler):
    """YAML handler that round-trips values without re-typing timestamps."""

    def load(self, fm, **kwargs):
        kwargs.setdefault("Loader", _RawTimestampLoader)
        return super().load(fm, **kwargs)

    def export(self, metadata, **kwargs):
        kwargs.setdefault("Dumper", _RawTimestampDumper)
        kwargs.setdefault("width", 4096)
        return super().export(metadata, **kwargs)


def format_post_source(text: str, source: str = "<string>") -> str:
    """Rewrite frontmatter in canonical key order, keeping the body and values as is."""
    handler = OrderingYAMLHandler()
    try:
        post = frontmatter.loads(text, handler=handler if handler.detect(text) else None)
    except Exception as e:
        raise ContentError(source, f"malformed frontmatter: {e}") from e

    if not post.metadata:
        return text.rstrip("\n") + "\n"

    ordered = {key: post.metadata[key] for key in CANONICAL_KEYS if key in post.metadata}
    for key, value in post.metadata.items():
        ordered.setdefault(key, value)
    post.metadata = ordered

    return frontmatter.dumps(post, handler=handler, sort_keys=False).rstrip("\n") + "\n"


def format_directory(repo, parser, check: bool = False) -> List[str]:
    """Format every post file; returns the files that changed (or would change)."""
    changed = []
    for source in repo.list_post_files():
        original = parser.get_markdown_content(source)
        formatted = format_post_source(original, source)
        if formatted == original:
            continue
        changed.append(source)
        if check:
            logger.info(f"Would reformat {source}")
        else:
            parser.write_markdown_content(source, formatted)
            logger.info(f"Reformatted {source}")
    return changed
