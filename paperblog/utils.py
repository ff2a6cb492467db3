import math

from slugify import slugify

WORDS_PER_MINUTE = 200


def calculate_reading_time(text: str) -> str:
    words = text.split()
    minutes = math.ceil(len(words) / WORDS_PER_MINUTE) or 1
    return f"{minutes} min"


def make_slug(value: str) -> str:
    """URL-safe slug: lowercase ascii words joined by hyphens."""
    return slugify(value, lowercase=True)


def tag_slug(tag: str) -> str:
    return make_slug(tag) or "tag"


def is_url_safe(slug: str) -> bool:
    return bool(slug) and make_slug(slug) == slug
