import json
from datetime import datetime, timezone

import pytest

from paperblog.exceptions import BuildError, ContentError
from paperblog.repos.posts_repo import FilesystemPostsRepo
from paperblog.services.content_parser import ContentParser
from paperblog.services.posts_service import PostsService
from paperblog.services.renderer import SiteRenderer
from paperblog.services.site_builder import SiteBuilder
from tests.conftest import fixed_clock, post_markdown, write_post


def make_builder(site_settings):
    root = site_settings.content_path
    service = PostsService(
        repo=FilesystemPostsRepo(root),
        parser=ContentParser(root),
        settings=site_settings,
        clock=fixed_clock,
    )
    return SiteBuilder(service, SiteRenderer(site_settings), site_settings)


def seed(site_settings):
    root = site_settings.content_path
    write_post(root, "first.md", post_markdown("First", datetime="2024-01-01T00:00:00Z", tags=["python"]))
    write_post(root, "second.md", post_markdown("Second", datetime="2024-02-01T00:00:00Z", tags=["python", "web"]))
    write_post(root, "third.md", post_markdown("Third", datetime="2024-03-01T00:00:00Z", featured=True))
    write_post(root, "2024/fourth.md", post_markdown("Fourth", datetime="2024-04-01T00:00:00Z"))
    write_post(root, "secret.md", post_markdown("Secret", datetime="2024-05-01T00:00:00Z", draft=True, tags=["hidden"]))
    write_post(root, "future.md", post_markdown("Future", datetime="2030-01-01T00:00:00Z"))
    write_post(root, "_notes.md", "not a post")


def read(site_settings, relative):
    return (site_settings.output_path / relative).read_text(encoding="utf-8")


def test_build_writes_expected_layout(site_settings):
    seed(site_settings)

    report = make_builder(site_settings).build()

    assert report.published == 4
    assert report.drafts == 1
    assert report.scheduled == 1
    out = site_settings.output_path
    for relative in [
        "index.html",
        "posts/index.html",
        "posts/2/index.html",
        "posts/first/index.html",
        "posts/fourth/index.html",
        "tags/index.html",
        "tags/python/index.html",
        "tags/web/index.html",
        "tags/others/index.html",
        "archives/index.html",
        "404.html",
        "rss.xml",
        "sitemap.xml",
        "robots.txt",
        "search.json",
        "assets/style.css",
    ]:
        assert (out / relative).is_file(), relative
    assert not (out / "posts/3/index.html").exists()


def test_published_listing_has_n_minus_m_entries_newest_first(site_settings):
    seed(site_settings)

    make_builder(site_settings).build()

    index = json.loads(read(site_settings, "search.json"))
    assert [entry["slug"] for entry in index] == ["fourth", "third", "second", "first"]


def test_drafts_and_scheduled_posts_never_reach_output(site_settings):
    seed(site_settings)

    report = make_builder(site_settings).build()

    out = site_settings.output_path
    assert not (out / "posts/secret").exists()
    assert not (out / "posts/future").exists()
    assert not (out / "tags/hidden").exists()
    for relative in ["rss.xml", "sitemap.xml", "search.json", "index.html", "tags/index.html"]:
        text = read(site_settings, relative)
        assert "Secret" not in text and "/posts/secret/" not in text
        assert "Future" not in text
    assert all("secret" not in f for f in report.files)


def test_index_shows_featured_and_recent_posts(site_settings):
    seed(site_settings)

    make_builder(site_settings).build()

    html = read(site_settings, "index.html")
    assert 'id="featured"' in html
    assert 'href="/posts/third/"' in html
    assert 'href="/posts/fourth/"' in html
    assert 'href="/posts/second/"' in html
    # POSTS_PER_INDEX is 2 in the test settings
    assert 'href="/posts/first/"' not in html
    assert "All Posts" in html



def test_build_time_applies_to_every_page(site_settings):
    seed(site_settings)

    report = make_builder(site_settings).build(now=datetime(2031, 1, 1, tzinfo=timezone.utc))

    assert report.scheduled == 0
    assert 'href="/posts/future/"' in read(site_settings, "index.html")
    assert 'href="/posts/future/"' in read(site_settings, "tags/others/index.html")
    assert 'href="/posts/future/"' in read(site_settings, "archives/index.html")

def test_post_pages_link_neighbours(site_settings):
    seed(site_settings)

    make_builder(site_settings).build()

    html = read(site_settings, "posts/second/index.html")
    assert 'href="/posts/first/" rel="prev"' in html
    assert 'href="/posts/third/" rel="next"' in html


def test_editing_one_post_leaves_unrelated_pages_identical(site_settings):
    seed(site_settings)
    make_builder(site_settings).build()
    before = {
        p.relative_to(site_settings.output_path).as_posix(): p.read_bytes()
        for p in site_settings.output_path.rglob("*")
        if p.is_file()
    }

    write_post(
        site_settings.content_path,
        "first.md",
        post_markdown("First", datetime="2024-01-01T00:00:00Z", tags=["python"], body="Edited body."),
    )
    make_builder(site_settings).build()
    after = {
        p.relative_to(site_settings.output_path).as_posix(): p.read_bytes()
        for p in site_settings.output_path.rglob("*")
        if p.is_file()
    }

    changed = {path for path in before if before[path] != after.get(path)}
    assert changed == {"posts/first/index.html"}
    assert set(before) == set(after)


def test_public_files_are_copied_and_override_bundled_assets(site_settings):
    seed(site_settings)
    public = site_settings.public_path
    (public / "assets").mkdir(parents=True)
    (public / "assets" / "style.css").write_text("body{}", encoding="utf-8")
    (public / "favicon.svg").write_text("<svg/>", encoding="utf-8")

    make_builder(site_settings).build()

    assert read(site_settings, "favicon.svg") == "<svg/>"
    assert read(site_settings, "assets/style.css") == "body{}"


def test_build_cleans_stale_output(site_settings):
    seed(site_settings)
    stale = site_settings.output_path / "posts" / "removed" / "index.html"
    stale.parent.mkdir(parents=True)
    stale.write_text("old", encoding="utf-8")

    make_builder(site_settings).build()

    assert not stale.exists()


def test_archives_can_be_disabled(site_settings):
    seed(site_settings)
    site_settings.SHOW_ARCHIVES = False

    make_builder(site_settings).build()

    assert not (site_settings.output_path / "archives").exists()


def test_build_fails_on_malformed_post(site_settings):
    seed(site_settings)
    write_post(site_settings.content_path, "broken.md", post_markdown(datetime="someday"))

    with pytest.raises(ContentError) as exc:
        make_builder(site_settings).build()

    assert exc.value.source == "broken.md"


def test_numeric_slug_colliding_with_pagination_fails(site_settings):
    seed(site_settings)
    write_post(site_settings.content_path, "2.md", post_markdown("Two", datetime="2023-01-01T00:00:00Z"))

    with pytest.raises(BuildError):
        make_builder(site_settings).build()


def test_refuses_to_clean_content_directory(site_settings):
    seed(site_settings)
    site_settings.OUTPUT_DIR = site_settings.CONTENT_DIR

    with pytest.raises(BuildError):
        make_builder(site_settings).build()

    assert (site_settings.content_path / "first.md").exists()
