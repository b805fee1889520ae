"""Who is doing the following.

A follower is either a local account (matched on ``follows.follower_id``) or a
remote ActivityPub actor (matched on ``follows.actor_id``, and on
``follower_id`` which federated rows set to the same URI).
"""
from dataclasses import dataclass
from typing import Union

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from parasocial.core.activitypub import is_absolute_url
from parasocial.models import Follow


@dataclass(frozen=True)
class LocalFollower:
    user_id: str

    @property
    def value(self) -> str:
        return self.user_id

    def matches(self) -> ColumnElement[bool]:
        return Follow.follower_id == self.user_id


@dataclass(frozen=True)
class FederatedFollower:
    actor_uri: str

    @property
    def value(self) -> str:
        return self.actor_uri

    def matches(self) -> ColumnElement[bool]:
        return or_(Follow.actor_id == self.actor_uri, Follow.follower_id == self.actor_uri)


FollowerIdentity = Union[LocalFollower, FederatedFollower]


def from_value(value: str) -> FollowerIdentity:
    """Classify a raw identifier: absolute http(s) URLs are remote actors."""
    if is_absolute_url(value):
        return FederatedFollower(value)
    return LocalFollower(value)


def as_identity(follower: Union[str, FollowerIdentity]) -> FollowerIdentity:
    if isinstance(follower, (LocalFollower, FederatedFollower)):
        return follower
    return from_value(follower)
