from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from board_app.api.deps import get_post_service
from board_app.exceptions import InvalidRequestError
from board_app.repositories import PageRequest, PostSearchCondition, SortDirection
from board_app.schemas import (
    CreatePostRequest,
    PostDetailResponse,
    PostListResponse,
    PostResponse,
    UpdatePostRequest,
)
from board_app.services import PostService

router = APIRouter(tags=["posts"])


def page_params(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("createdAt", alias="sortBy"),
    direction: str = Query("DESC"),
) -> PageRequest:
    return PageRequest(page, size, sort_by, SortDirection.parse(direction))


@router.get("", response_model=PostListResponse)
async def get_posts(
    page_request: PageRequest = Depends(page_params),
    service: PostService = Depends(get_post_service),
):
    return await service.get_posts(page_request)


@router.get("/search", response_model=PostListResponse)
async def search_posts(
    keyword: str = Query(..., min_length=1),
    page_request: PageRequest = Depends(page_params),
    service: PostService = Depends(get_post_service),
):
    """Title OR content contains ``keyword`` (case-insensitive)."""
    if not keyword.strip():
        raise InvalidRequestError("keyword must not be blank")
    return await service.search_posts(keyword, page_request)


@router.get("/search/advanced", response_model=PostListResponse)
async def search_posts_advanced(
    title: Optional[str] = None,
    content: Optional[str] = None,
    author: Optional[str] = None,
    authors: List[str] = Query(default=[]),
    created_after: Optional[datetime] = Query(None, alias="createdAfter"),
    created_before: Optional[datetime] = Query(None, alias="createdBefore"),
    updated_after: Optional[datetime] = Query(None, alias="updatedAfter"),
    updated_before: Optional[datetime] = Query(None, alias="updatedBefore"),
    min_comment_count: Optional[int] = Query(None, ge=0, alias="minCommentCount"),
    max_comment_count: Optional[int] = Query(None, ge=0, alias="maxCommentCount"),
    keyword: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    service: PostService = Depends(get_post_service),
):
    """Every provided filter is ANDed; results are newest first."""
    condition = PostSearchCondition(
        title_contains=title,
        content_contains=content,
        author_equals=author,
        authors_in=authors,
        created_after=created_after,
        created_before=created_before,
        updated_after=updated_after,
        updated_before=updated_before,
        min_comment_count=min_comment_count,
        max_comment_count=max_comment_count,
        keyword=keyword,
    )
    return await service.search_posts_advanced(condition, PageRequest(page, size))


@router.get("/stats/authors", response_model=Dict[str, int])
async def count_posts_by_author(service: PostService = Depends(get_post_service)):
    return await service.count_posts_by_author()


@router.get("/recent", response_model=PostListResponse)
async def get_recent_posts(
    days: int = Query(7, ge=0),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    service: PostService = Depends(get_post_service),
):
    return await service.get_recent_posts(days, PageRequest(page, size))


@router.get("/popular", response_model=List[PostResponse])
async def get_popular_posts(
    limit: int = Query(10, ge=1, le=100),
    service: PostService = Depends(get_post_service),
):
    return await service.get_popular_posts(limit)


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post(post_id: int, service: PostService = Depends(get_post_service)):
    return await service.get_post(post_id)


# Performance comparison: same payload, different aggregation strategy

@router.get("/{post_id}/sync", response_model=PostDetailResponse)
async def get_post_sync(post_id: int, service: PostService = Depends(get_post_service)):
    return await service.get_post_sync(post_id)


@router.get("/{post_id}/async", response_model=PostDetailResponse)
async def get_post_async(post_id: int, service: PostService = Depends(get_post_service)):
    return await service.get_post_async(post_id)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    request: CreatePostRequest,
    service: PostService = Depends(get_post_service),
):
    return await service.create_post(request)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    request: UpdatePostRequest,
    service: PostService = Depends(get_post_service),
):
    return await service.update_post(post_id, request)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: int, service: PostService = Depends(get_post_service)):
    await service.delete_post(post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
