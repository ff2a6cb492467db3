"""RSS, sitemap, robots.txt and search index generation."""

import datetime as dt
import json
from email.utils import format_datetime
from typing import Iterable, List, Optional, Sequence, Tuple
from xml.etree.ElementTree import Element, SubElement, register_namespace, tostring

from paperblog.schemas.blog import Post

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def build_rss(posts: Sequence[Post], settings) -> str:
    """Serialize published posts to an RSS 2.0 document."""
    base_url = settings.site_base_url

    root = Element("rss", attrib={"version": "2.0"})
    channel = SubElement(root, "channel")
    SubElement(channel, "title").text = settings.SITE_TITLE
    SubElement(channel, "link").text = f"{base_url}/"
    SubElement(channel, "description").text = settings.SITE_DESCRIPTION
    SubElement(channel, "language").text = settings.SITE_LANG
    if posts:
        # Newest post rather than wall clock keeps rebuilds byte-identical
        newest = max(post.mod_datetime or post.datetime for post in posts)
        SubElement(channel, "lastBuildDate").text = format_datetime(newest)

    for post in posts:
        link = f"{base_url}{post.url}"
        item = SubElement(channel, "item")
        SubElement(item, "title").text = post.title
        SubElement(item, "link").text = link
        SubElement(item, "guid", attrib={"isPermaLink": "true"}).text = link
        SubElement(item, "description").text = post.description
        SubElement(item, "pubDate").text = format_datetime(post.datetime)
        for tag in post.tags:
            SubElement(item, "category").text = tag

    return XML_DECLARATION + tostring(root, encoding="unicode") + "\n"


def build_sitemap(
    entries: Iterable[Tuple[str, Optional[dt.datetime]]], settings
) -> str:
    """Serialize (path, lastmod) pairs to a sitemaps.org urlset."""
    register_namespace("", SITEMAP_NS)
    root = Element(f"{{{SITEMAP_NS}}}urlset")
    for path, lastmod in entries:
        url = SubElement(root, f"{{{SITEMAP_NS}}}url")
        SubElement(url, f"{{{SITEMAP_NS}}}loc").text = f"{settings.site_base_url}{path}"
        if lastmod:
            SubElement(url, f"{{{SITEMAP_NS}}}lastmod").text = lastmod.isoformat()
    return XML_DECLARATION + tostring(root, encoding="unicode") + "\n"


def build_robots(settings) -> str:
    return (
        "User-agent: *\n"
        "Allow: /\n"
        "\n"
        f"Sitemap: {settings.site_base_url}/sitemap.xml\n"
    )


def build_search_index(posts: Iterable[Post]) -> str:
    entries: List[dict] = [
        {
            "title": post.title,
            "description": post.description,
            "slug": post.slug,
            "url": post.url,
            "tags": post.tags,
            "datetime": post.datetime.isoformat(),
        }
        for post in posts
    ]
    return json.dumps(entries, indent=2, ensure_ascii=False) + "\n"
