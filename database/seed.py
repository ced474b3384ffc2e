import asyncio
import os
import time
from datetime import datetime, timedelta

from faker import Faker
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from board_app import settings
from board_app.models import Base

# Configuration
NUM_POSTS = int(os.getenv("NUM_POSTS", 50_000))
NUM_COMMENTS = int(os.getenv("NUM_COMMENTS", 100_000))
NUM_LIKES = int(os.getenv("NUM_LIKES", 100_000))
NUM_USERS = int(os.getenv("NUM_USERS", 10_000))

fake = Faker()


async def get_engine():
    return create_async_engine(settings.DATABASE_URL, echo=False)


def random_timestamp():
    return datetime.now() - timedelta(minutes=fake.random_int(min=0, max=60 * 24 * 365))


async def copy_records(conn, table, records, columns, timeout=60):
    # Using raw COPY for maximum speed
    raw_conn = await conn.get_raw_connection()
    await raw_conn.driver_connection.copy_records_to_table(
        table, records=records, columns=columns, timeout=timeout
    )


async def seed_posts(conn):
    print(f"Seeding {NUM_POSTS} posts...")
    posts = []
    for _ in range(NUM_POSTS):
        created = random_timestamp()
        posts.append((fake.sentence()[:200], fake.text(), fake.user_name()[:50], created, created))

    await copy_records(
        conn, "posts", posts, ["title", "content", "author", "created_at", "updated_at"]
    )
    print("Posts seeded.")


async def seed_comments(conn):
    print(f"Seeding {NUM_COMMENTS} comments...")
    comments = []
    for _ in range(NUM_COMMENTS):
        pid = fake.random_int(min=1, max=NUM_POSTS)
        created = random_timestamp()
        comments.append((pid, fake.text(), fake.user_name()[:50], created, created))

    await copy_records(
        conn,
        "comments",
        comments,
        ["post_id", "content", "author", "created_at", "updated_at"],
    )
    print("Comments seeded.")


async def seed_likes(conn):
    print(f"Seeding {NUM_LIKES} likes...")
    # (post_id, user_id) must be unique
    pairs = set()
    while len(pairs) < min(NUM_LIKES, NUM_POSTS * NUM_USERS):
        pairs.add((fake.random_int(min=1, max=NUM_POSTS), fake.random_int(min=1, max=NUM_USERS)))

    likes = [(pid, uid, random_timestamp()) for pid, uid in pairs]
    await copy_records(conn, "post_likes", likes, ["post_id", "user_id", "created_at"])
    print("Likes seeded.")


async def main():
    start_time = time.time()
    engine = await get_engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

        print("Cleaning up existing data...")
        await conn.execute(
            text("TRUNCATE TABLE comments, post_likes, posts RESTART IDENTITY CASCADE")
        )

        await seed_posts(conn)
        await seed_comments(conn)
        await seed_likes(conn)

    await engine.dispose()
    print(f"Total Seeding Time: {time.time() - start_time:.2f} seconds")


if __name__ == "__main__":
    asyncio.run(main())
