import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from paperblog import dependencies as deps
from paperblog.schemas.blog import PostDetail, PostSummary, TagSummary
from paperblog.services.posts_service import PostsService, to_detail, to_summary
from paperblog.services.renderer import render_post_html

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/posts", response_model=List[PostSummary])
def list_posts(service: PostsService = Depends(deps.get_posts_service)):
    """Get all published posts metadata, newest first."""
    try:
        return [to_summary(post) for post in service.published_posts()]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error listing posts: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve posts")


@router.get("/posts/{slug}", response_model=PostDetail)
def get_post(
    slug: str,
    service: PostsService = Depends(deps.get_posts_service),
):
    """Get a single post by slug."""
    try:
        post = service.get_post(slug)
        if not post:
            raise HTTPException(status_code=404, detail="Post not found")
        return to_detail(post, render_post_html(post))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error retrieving post {slug}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve post")


@router.get("/tags", response_model=List[TagSummary])
def list_tags(service: PostsService = Depends(deps.get_posts_service)):
    try:
        return service.tags()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error listing tags: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve tags")


@router.get("/tags/{tag}", response_model=List[PostSummary])
def list_posts_by_tag(
    tag: str,
    service: PostsService = Depends(deps.get_posts_service),
):
    try:
        posts = service.posts_by_tag(tag)
        if not posts:
            raise HTTPException(status_code=404, detail="Tag not found")
        return [to_summary(post) for post in posts]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error listing posts for tag {tag}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve posts")
