from fastapi import Depends, Request

from paperblog.repos.posts_repo import FilesystemPostsRepo
from paperblog.services.content_parser import ContentParser
from paperblog.services.posts_service import PostsService
from paperblog.services.renderer import SiteRenderer
from paperblog.settings import Settings, settings


def get_settings(request: Request) -> Settings:
    """Settings the app was created with; falls back to the global instance."""
    return getattr(request.app.state, "settings", settings)


def get_posts_repo(current_settings: Settings = Depends(get_settings)):
    return FilesystemPostsRepo(current_settings.content_path)


def get_content_parser(current_settings: Settings = Depends(get_settings)):
    return ContentParser(current_settings.content_path)


def get_posts_service(
    repo=Depends(get_posts_repo),
    parser=Depends(get_content_parser),
    current_settings: Settings = Depends(get_settings),
):
    # Dev server: skip broken files and show scheduled posts
    return PostsService(
        repo=repo,
        parser=parser,
        settings=current_settings,
        strict=False,
        include_scheduled=True,
    )


def get_renderer(current_settings: Settings = Depends(get_settings)):
    return SiteRenderer(current_settings)
