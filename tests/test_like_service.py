import pytest

from board_app.exceptions import DuplicateLikeError, LikeNotFoundError, PostNotFoundError
from board_app.services import PostLikeService


@pytest.fixture
def service(session):
    return PostLikeService(session)


async def test_add_like(service, make_post):
    post_id = await make_post()

    like = await service.add_like(post_id, 42)

    assert (like.post_id, like.user_id) == (post_id, 42)
    assert like.id is not None
    assert await service.get_like_count(post_id) == 1
    assert await service.is_liked_by_user(post_id, 42)


async def test_duplicate_like_is_rejected_and_count_stays_one(service, make_post):
    post_id = await make_post()
    await service.add_like(post_id, 42)

    with pytest.raises(DuplicateLikeError):
        await service.add_like(post_id, 42)

    assert await service.get_like_count(post_id) == 1


async def test_like_on_missing_post_is_rejected(service):
    with pytest.raises(PostNotFoundError):
        await service.add_like(999, 1)

    assert await service.get_like_count(999) == 0


async def test_unique_constraint_backs_up_the_existence_check(service, make_post, monkeypatch):
    post_id = await make_post()
    await service.add_like(post_id, 42)

    async def never_exists(post_id, user_id):
        return False

    # simulate a concurrent like slipping past the check
    monkeypatch.setattr(service.likes, "exists_by_post_id_and_user_id", never_exists)

    with pytest.raises(DuplicateLikeError):
        await service.add_like(post_id, 42)

    monkeypatch.undo()
    assert await service.get_like_count(post_id) == 1


async def test_remove_like(service, make_post):
    post_id = await make_post()
    await service.add_like(post_id, 42)

    await service.remove_like(post_id, 42)

    assert await service.get_like_count(post_id) == 0
    assert not await service.is_liked_by_user(post_id, 42)


async def test_remove_missing_like_raises(service, make_post):
    post_id = await make_post()

    with pytest.raises(LikeNotFoundError):
        await service.remove_like(post_id, 42)


async def test_likes_by_post_and_by_user(service, make_post):
    first = await make_post()
    second = await make_post()
    await service.add_like(first, 1)
    await service.add_like(first, 2)
    await service.add_like(second, 1)

    by_post = await service.get_likes_by_post_id(first)
    by_user = await service.get_likes_by_user_id(1)

    assert [like.user_id for like in by_post] == [1, 2]
    assert [like.post_id for like in by_user] == [first, second]
