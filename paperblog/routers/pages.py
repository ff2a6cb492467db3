import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, HTMLResponse, Response

from paperblog import dependencies as deps
from paperblog.services import feed_service
from paperblog.services.posts_service import paginate
from paperblog.services.renderer import SiteRenderer, render_post_html
from paperblog.services.site_builder import BUNDLED_STATIC_DIR
from paperblog.settings import Settings
from paperblog.utils import tag_slug

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(renderer: SiteRenderer) -> HTMLResponse:
    return HTMLResponse(renderer.not_found(), status_code=404)


@router.get("/", response_class=HTMLResponse)
def index(
    service=Depends(deps.get_posts_service),
    renderer: SiteRenderer = Depends(deps.get_renderer),
    current_settings: Settings = Depends(deps.get_settings),
):
    posts = service.published_posts()
    per_index = current_settings.POSTS_PER_INDEX
    featured = service.featured_posts()
    recent = service.recent_posts()[:per_index]
    return renderer.index(featured, recent, has_more=len(posts) > per_index)


@router.get("/posts/", response_class=HTMLResponse)
def posts_index(
    service=Depends(deps.get_posts_service),
    renderer: SiteRenderer = Depends(deps.get_renderer),
    current_settings: Settings = Depends(deps.get_settings),
):
    page = paginate(service.published_posts(), current_settings.POSTS_PER_PAGE, 1, "/posts/")
    return renderer.posts_page(page)


@router.get("/posts/{key}/", response_class=HTMLResponse)
def post_or_page(
    key: str,
    service=Depends(deps.get_posts_service),
    renderer: SiteRenderer = Depends(deps.get_renderer),
    current_settings: Settings = Depends(deps.get_settings),
):
    """A numeric key is a listing page, anything else a post slug."""
    posts = service.published_posts()

    if key.isdigit():
        page = paginate(posts, current_settings.POSTS_PER_PAGE, int(key), "/posts/")
        if page is None:
            return _not_found(renderer)
        return renderer.posts_page(page)

    for index, post in enumerate(posts):
        if post.slug == key:
            next_post = posts[index - 1] if index > 0 else None
            prev_post = posts[index + 1] if index + 1 < len(posts) else None
            return renderer.post(post, render_post_html(post), prev_post, next_post)

    logger.debug(f"No published post for slug {key}")
    return _not_found(renderer)


@router.get("/tags/", response_class=HTMLResponse)
def tags_index(
    service=Depends(deps.get_posts_service),
    renderer: SiteRenderer = Depends(deps.get_renderer),
):
    return renderer.tags_index(service.tags())


@router.get("/tags/{tag}/", response_class=HTMLResponse)
@router.get("/tags/{tag}/{page_number}/", response_class=HTMLResponse)
def tag_page(
    tag: str,
    page_number: int = 1,
    service=Depends(deps.get_posts_service),
    renderer: SiteRenderer = Depends(deps.get_renderer),
    current_settings: Settings = Depends(deps.get_settings),
):
    slug = tag_slug(tag)
    summary = next((t for t in service.tags() if t.slug == slug), None)
    if summary is None:
        return _not_found(renderer)

    posts = service.posts_by_tag(slug)
    page = paginate(posts, current_settings.POSTS_PER_PAGE, page_number, f"/tags/{slug}/")
    if page is None:
        return _not_found(renderer)
    return renderer.tag_page(summary, page)


@router.get("/archives/", response_class=HTMLResponse)
def archives(
    service=Depends(deps.get_posts_service),
    renderer: SiteRenderer = Depends(deps.get_renderer),
    current_settings: Settings = Depends(deps.get_settings),
):
    if not current_settings.SHOW_ARCHIVES:
        return _not_found(renderer)
    return renderer.archives(service.archives())


@router.get("/rss.xml")
def rss(
    service=Depends(deps.get_posts_service),
    current_settings: Settings = Depends(deps.get_settings),
):
    xml = feed_service.build_rss(service.published_posts(), current_settings)
    return Response(content=xml, media_type="application/rss+xml")


@router.get("/search.json")
def search_index(service=Depends(deps.get_posts_service)):
    return Response(
        content=feed_service.build_search_index(service.published_posts()),
        media_type="application/json",
    )


@router.get("/assets/style.css")
def stylesheet(current_settings: Settings = Depends(deps.get_settings)):
    override = current_settings.public_path / "assets" / "style.css"
    path = override if override.is_file() else BUNDLED_STATIC_DIR / "assets" / "style.css"
    return FileResponse(path, media_type="text/css")
