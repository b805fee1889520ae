from datetime import datetime, timedelta
import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from parasocial.core.identity import FederatedFollower, LocalFollower
from parasocial.models import Follow

ACTOR = "https://remote.example/users/dana"


class TestFollowRepository:
    """Follow relationship store."""

    @pytest.mark.asyncio
    async def test_create_includes_followed_user(self, follow_repository, create_user):
        """Test creating a follow returns the followed user's public fields."""
        alice = await create_user("alice")
        bob = await create_user("bob", is_verified=True)

        follow = await follow_repository.create(alice.id, bob.id)

        assert follow.id
        assert follow.follower_id == alice.id
        assert follow.followed_id == bob.id
        assert follow.actor_id is None
        assert follow.is_accepted is True
        assert follow.created_at is not None
        assert follow.followed.username == "bob"
        assert follow.followed.is_verified is True

    @pytest.mark.asyncio
    async def test_create_duplicate_pair_violates_constraint(self, follow_repository, create_user):
        """Test the unique pair index rejects a second identical follow."""
        alice = await create_user("alice")
        bob = await create_user("bob")
        await follow_repository.create(alice.id, bob.id)

        with pytest.raises(IntegrityError):
            await follow_repository.create(alice.id, bob.id)
        await follow_repository.rollback()

    @pytest.mark.asyncio
    async def test_create_unknown_followed_user_violates_constraint(self, follow_repository, create_user):
        """Test the foreign key rejects a follow of a user that does not exist."""
        alice = await create_user("alice")

        with pytest.raises(IntegrityError):
            await follow_repository.create(alice.id, "no-such-user")
        await follow_repository.rollback()

    @pytest.mark.asyncio
    async def test_find_by_actor_or_follower_id(self, follow_repository, create_user):
        """Test federated follows are found by their actor URI."""
        bob = await create_user("bob")
        await follow_repository.create(ACTOR, bob.id, actor_id=ACTOR)

        assert await follow_repository.find_by_follower_and_followed(ACTOR, bob.id) is not None
        assert await follow_repository.find_by_follower_and_followed(FederatedFollower(ACTOR), bob.id) is not None
        assert await follow_repository.find_by_follower_and_followed("someone-else", bob.id) is None

    @pytest.mark.asyncio
    async def test_find_by_actor_when_follower_id_differs(self, follow_repository, db_session, create_user):
        """Test the actor column matches even if follower_id holds something else."""
        bob = await create_user("bob")
        db_session.add(Follow(follower_id="legacy-remote-id", followed_id=bob.id, actor_id=ACTOR))
        await db_session.flush()

        assert await follow_repository.find_by_follower_and_followed(ACTOR, bob.id) is not None
        assert await follow_repository.find_by_follower_and_followed(LocalFollower("legacy-remote-id"), bob.id) is not None

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, follow_repository, create_user):
        """Test deleting returns the row once, then None."""
        alice = await create_user("alice")
        bob = await create_user("bob")
        await follow_repository.create(alice.id, bob.id)

        deleted = await follow_repository.delete_by_follower_and_followed(alice.id, bob.id)
        assert deleted is not None
        assert deleted.followed_id == bob.id

        assert await follow_repository.delete_by_follower_and_followed(alice.id, bob.id) is None
        assert not await follow_repository.is_following(alice.id, bob.id)

    @pytest.mark.asyncio
    async def test_followers_pagination(self, follow_repository, create_user):
        """Test six followers split into two pages of three."""
        user = await create_user("popular")
        for i in range(6):
            await follow_repository.create(f"follower-{i}", user.id)

        first = await follow_repository.find_followers_by_user_id(user.id, offset=0, limit=3)
        assert len(first.followers) == 3
        assert first.total_count == 6
        assert first.has_more

        second = await follow_repository.find_followers_by_user_id(user.id, offset=3, limit=3)
        assert len(second.followers) == 3
        assert second.total_count == 6
        assert not second.has_more

        ids_page1 = {f.follower_id for f in first.followers}
        ids_page2 = {f.follower_id for f in second.followers}
        assert ids_page1.isdisjoint(ids_page2)

    @pytest.mark.asyncio
    async def test_followers_window_is_clamped(self, follow_repository, create_user):
        """Test out-of-range offset/limit are clamped rather than rejected."""
        user = await create_user("popular")
        for i in range(3):
            await follow_repository.create(f"follower-{i}", user.id)

        page = await follow_repository.find_followers_by_user_id(user.id, offset=-10, limit=1000)
        assert len(page.followers) == 3
        assert not page.has_more

    @pytest.mark.asyncio
    async def test_following_includes_federated_identity(self, follow_repository, create_user):
        """Test following lists match on follower_id or actor_id."""
        bob = await create_user("bob")
        carol = await create_user("carol")
        await follow_repository.create(ACTOR, bob.id, actor_id=ACTOR)
        await follow_repository.create(ACTOR, carol.id, actor_id=ACTOR)

        page = await follow_repository.find_following_by_user_id(ACTOR)
        assert page.total_count == 2
        assert {f.followed.username for f in page.following} == {"bob", "carol"}

    @pytest.mark.asyncio
    async def test_follow_stats_count_accepted_only(self, follow_repository, db_session, create_user):
        """Test stats ignore relationships that are not accepted."""
        alice = await create_user("alice")
        bob = await create_user("bob")
        carol = await create_user("carol")
        await follow_repository.create(alice.id, bob.id)
        await follow_repository.create(carol.id, bob.id)
        await follow_repository.create(bob.id, alice.id)
        db_session.add(Follow(follower_id="pending-actor", followed_id=bob.id, is_accepted=False))
        await db_session.flush()

        stats = await follow_repository.get_follow_stats(bob.id)
        assert stats.follower_count == 2
        assert stats.following_count == 1

    @pytest.mark.asyncio
    async def test_is_following_requires_acceptance(self, follow_repository, db_session, create_user):
        """Test an unaccepted relationship does not count as following."""
        bob = await create_user("bob")
        db_session.add(Follow(follower_id="pending-user", followed_id=bob.id, is_accepted=False))
        await db_session.flush()

        assert await follow_repository.find_by_follower_and_followed("pending-user", bob.id) is not None
        assert not await follow_repository.is_following("pending-user", bob.id)

    @pytest.mark.asyncio
    async def test_bulk_check_following(self, follow_repository, create_user):
        """Test every requested id gets an entry, defaulting to False."""
        follower = await create_user("follower")
        a = await create_user("user_a")
        b = await create_user("user_b")
        c = await create_user("user_c")
        await follow_repository.create(follower.id, a.id)
        await follow_repository.create(follower.id, c.id)

        result = await follow_repository.bulk_check_following(follower.id, [a.id, b.id, c.id, "unknown"])

        assert result == {a.id: True, b.id: False, c.id: True, "unknown": False}

    @pytest.mark.asyncio
    async def test_bulk_check_empty(self, follow_repository):
        assert await follow_repository.bulk_check_following("anyone", []) == {}

    @pytest.mark.asyncio
    async def test_recent_followers_newest_first(self, follow_repository, db_session, create_user):
        """Test recent followers return the newest rows in descending order."""
        user = await create_user("popular")
        base = datetime(2024, 1, 1, 12, 0, 0)
        for i in range(4):
            db_session.add(Follow(
                follower_id=f"follower-{i}",
                followed_id=user.id,
                created_at=base + timedelta(minutes=i),
            ))
        await db_session.flush()

        recent = await follow_repository.find_recent_followers(user.id, 2)

        assert [f.follower_id for f in recent] == ["follower-3", "follower-2"]
        assert recent[0].created_at > recent[1].created_at

    @pytest.mark.asyncio
    async def test_deleting_followed_user_cascades(self, follow_repository, user_service, db_session, create_user):
        """Test removing a user removes its follows in both directions only."""
        alice = await create_user("alice")
        bob = await create_user("bob")
        carol = await create_user("carol")
        await follow_repository.create(alice.id, bob.id)
        await follow_repository.create(carol.id, bob.id)
        await follow_repository.create(bob.id, carol.id)
        await follow_repository.create(alice.id, carol.id)
        await follow_repository.create(ACTOR, bob.id, actor_id=ACTOR)

        await user_service.delete(bob.id)

        stats = await follow_repository.get_follow_stats(bob.id)
        assert stats.follower_count == 0
        assert stats.following_count == 0

        remaining = await db_session.execute(
            select(func.count()).select_from(Follow).where(Follow.followed_id == bob.id)
        )
        assert remaining.scalar_one() == 0

        # Unrelated relationship survives
        assert await follow_repository.is_following(alice.id, carol.id)
        carol_stats = await follow_repository.get_follow_stats(carol.id)
        assert carol_stats.follower_count == 1

    @pytest.mark.asyncio
    async def test_find_by_id(self, follow_repository, create_user):
        alice = await create_user("alice")
        bob = await create_user("bob")
        follow = await follow_repository.create(alice.id, bob.id)

        found = await follow_repository.find_by_id(follow.id)

        assert found is follow
        assert await follow_repository.find_by_id("missing") is None
