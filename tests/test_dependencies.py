from types import SimpleNamespace

from paperblog.dependencies import (
    get_content_parser,
    get_posts_repo,
    get_posts_service,
    get_renderer,
    get_settings,
)
from paperblog.repos.posts_repo import FilesystemPostsRepo
from paperblog.services.content_parser import ContentParser
from paperblog.services.posts_service import PostsService
from paperblog.services.renderer import SiteRenderer
from paperblog.settings import settings as global_settings


def _request(state):
    return SimpleNamespace(app=SimpleNamespace(state=state))


def test_get_settings_prefers_app_state(site_settings):
    assert get_settings(_request(SimpleNamespace(settings=site_settings))) is site_settings


def test_get_settings_falls_back_to_global():
    assert get_settings(_request(SimpleNamespace())) is global_settings


def test_get_posts_repo_and_parser_use_content_dir(site_settings):
    repo = get_posts_repo(current_settings=site_settings)
    parser = get_content_parser(current_settings=site_settings)

    assert isinstance(repo, FilesystemPostsRepo)
    assert repo.root == site_settings.content_path
    assert isinstance(parser, ContentParser)
    assert parser.root == site_settings.content_path


def test_get_posts_service_is_lenient_and_shows_scheduled(site_settings):
    repo = object()
    parser = object()

    svc = get_posts_service(repo=repo, parser=parser, current_settings=site_settings)

    assert isinstance(svc, PostsService)
    assert svc.repo is repo
    assert svc.parser is parser
    assert svc.strict is False
    assert svc.include_scheduled is True


def test_get_renderer_constructs_renderer(site_settings):
    renderer = get_renderer(current_settings=site_settings)

    assert isinstance(renderer, SiteRenderer)
    assert renderer.settings is site_settings
