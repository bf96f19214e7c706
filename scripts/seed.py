"""Database seeder for local development and demos.

Clears every table, then creates users, articles with tags, comments, follow
edges and favorites through the repositories and services, so the seeded
data obeys the same rules as data created over HTTP.
"""
import argparse
import asyncio
import random
import time

from conduit.database import Base, async_session, engine
from conduit.errors import ArticleAlreadyExists
from conduit.middleware import deadline
from conduit.repositories import ArticleRepository, ProfileRepository, UserRepository
from conduit.security import hash_password
from conduit.services import article_service, comment_service

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "testing",
        "performance", "security", "asyncio", "sqlalchemy", "devops", "rest-api"]

SEED_PASSWORD = "password123"


async def clear_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def seed(small: bool = False, rng: random.Random | None = None) -> dict:
    rng = rng or random.Random(42)
    num_users = 5 if small else 25
    num_articles = 20 if small else 200
    max_comments = 2 if small else 5

    print(f"Seeding: {num_users} users, {num_articles} articles, up to {max_comments} comments each")
    start = time.perf_counter()

    await clear_tables()
    # One hash for every seeded account; bcrypt per user would dominate the run.
    password_hash = await asyncio.to_thread(hash_password, SEED_PASSWORD)

    async with async_session() as session:
        users = UserRepository(session)
        user_ids = []
        for i in range(num_users):
            record = await users.create(f"user_{i:03d}", f"user_{i:03d}@example.com", password_hash)
            await users.update(record.id, {"bio": f"I am seeded user number {i}."})
            user_ids.append(record.id)
        print(f"  Created {len(user_ids)} users (password: {SEED_PASSWORD})")

        profiles = ProfileRepository(session)
        follow_count = 0
        for follower_id in user_ids:
            for following_id in rng.sample(user_ids, k=min(3, len(user_ids))):
                if following_id != follower_id:
                    await profiles.follow(follower_id, following_id)
                    follow_count += 1
        print(f"  Created {follow_count} follows")

        articles = ArticleRepository(session)
        slugs: list[tuple[str, int]] = []
        comment_count = 0
        for i in range(num_articles):
            author_id = rng.choice(user_ids)
            topic = rng.choice(TAGS)
            try:
                article = await article_service.create_article(
                    session,
                    author_id,
                    title=f"Article {i}: Getting started with {topic}",
                    description=f"A short introduction to {topic}.",
                    body=f"This is the body of article {i} about {topic}. " * 10,
                    tag_list=rng.sample(TAGS, k=rng.randint(1, 4)),
                )
            except ArticleAlreadyExists:
                continue
            slugs.append((article.slug, author_id))

            for _ in range(rng.randint(0, max_comments)):
                await comment_service.add_comment(
                    session, rng.choice(user_ids), article.slug, f"Comment on article {i}."
                )
                comment_count += 1
        print(f"  Created {len(slugs)} articles, {comment_count} comments")

        favorite_count = 0
        for slug, author_id in slugs:
            record = await articles.get_by_slug(slug)
            for user_id in rng.sample(user_ids, k=rng.randint(0, len(user_ids) // 2)):
                if user_id != author_id:
                    await articles.add_favorite(user_id, record.id)
                    favorite_count += 1
        print(f"  Created {favorite_count} favorites")

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    return {
        "users": len(user_ids),
        "articles": len(slugs),
        "comments": comment_count,
        "follows": follow_count,
        "favorites": favorite_count,
    }


async def _run(small: bool, timeout: float | None) -> None:
    with deadline(timeout):
        await seed(small=small)
    await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Seed the Conduit database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset (20 articles)")
    parser.add_argument("--timeout", type=float, default=None, help="Abort after this many seconds")
    args = parser.parse_args()
    asyncio.run(_run(args.small, args.timeout))


if __name__ == "__main__":
    main()
