from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from board_app.api.deps import get_comment_service
from board_app.schemas import CommentResponse, CreateCommentRequest, UpdateCommentRequest
from board_app.services import CommentService

# Comments scoped to a post: /posts/{post_id}/comments
router = APIRouter(tags=["comments"])

# Cross-post lookups: /comments
author_router = APIRouter(tags=["comments"])


@router.get("", response_model=List[CommentResponse])
async def get_comments(post_id: int, service: CommentService = Depends(get_comment_service)):
    return await service.get_comments_by_post_id(post_id)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: int,
    request: CreateCommentRequest,
    service: CommentService = Depends(get_comment_service),
):
    return await service.create_comment(post_id, request)


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    post_id: int,
    comment_id: int,
    request: UpdateCommentRequest,
    service: CommentService = Depends(get_comment_service),
):
    return await service.update_comment(post_id, comment_id, request)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    post_id: int,
    comment_id: int,
    service: CommentService = Depends(get_comment_service),
):
    await service.delete_comment(post_id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@author_router.get("", response_model=List[CommentResponse])
async def get_comments_by_author(
    author: str = Query(..., min_length=1),
    service: CommentService = Depends(get_comment_service),
):
    return await service.get_comments_by_author(author)
