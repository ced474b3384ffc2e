from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from board_app.api.deps import get_like_service
from board_app.schemas import (
    LikeCheckResponse,
    LikeCountResponse,
    LikeInfo,
    LikeListResponse,
    LikeResponse,
)
from board_app.services import PostLikeService

# Likes scoped to a post: /posts/{post_id}/likes
router = APIRouter(tags=["likes"])

# Likes given by a user: /users/{user_id}/likes
user_router = APIRouter(tags=["likes"])


@router.post("", response_model=LikeResponse, status_code=status.HTTP_201_CREATED)
async def add_like(
    post_id: int,
    user_id: int = Query(..., alias="userId"),
    service: PostLikeService = Depends(get_like_service),
):
    like = await service.add_like(post_id, user_id)
    return LikeResponse(post_id=like.post_id, user_id=like.user_id, message="Like added.")


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def remove_like(
    post_id: int,
    user_id: int = Query(..., alias="userId"),
    service: PostLikeService = Depends(get_like_service),
):
    await service.remove_like(post_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=LikeListResponse)
async def get_likes(post_id: int, service: PostLikeService = Depends(get_like_service)):
    likes = await service.get_likes_by_post_id(post_id)
    return LikeListResponse(post_id=post_id, count=len(likes), likes=likes)


@router.get("/count", response_model=LikeCountResponse)
async def get_like_count(post_id: int, service: PostLikeService = Depends(get_like_service)):
    count = await service.get_like_count(post_id)
    return LikeCountResponse(post_id=post_id, count=count)


@router.get("/check", response_model=LikeCheckResponse)
async def check_like(
    post_id: int,
    user_id: int = Query(..., alias="userId"),
    service: PostLikeService = Depends(get_like_service),
):
    is_liked = await service.is_liked_by_user(post_id, user_id)
    return LikeCheckResponse(post_id=post_id, user_id=user_id, is_liked=is_liked)


@user_router.get("/{user_id}/likes", response_model=List[LikeInfo])
async def get_likes_by_user(user_id: int, service: PostLikeService = Depends(get_like_service)):
    return await service.get_likes_by_user_id(user_id)
