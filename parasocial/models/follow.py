from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from parasocial.database import Base
from parasocial.models.user import generate_uuid

if TYPE_CHECKING:
    from parasocial.models.user import User


class Follow(Base):
    """A directed "follower follows followed" edge.

    ``follower_id`` is either a local user id or, for federated follows, the
    remote actor URI (the same value as ``actor_id``). It carries no foreign
    key for that reason; ``followed_id`` is always a local account.
    """

    __tablename__ = "follows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    follower_id: Mapped[str] = mapped_column(String(255), nullable=False)
    followed_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    actor_id: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    is_accepted: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    followed: Mapped["User"] = relationship("User", lazy="joined")

    __table_args__ = (
        Index("idx_follower", "follower_id"),
        Index("idx_followed", "followed_id"),
        Index("idx_actor", "actor_id"),
        Index("idx_follow_pair", "follower_id", "followed_id", unique=True),
    )

    @property
    def is_federated(self) -> bool:
        return self.actor_id is not None

    def __repr__(self) -> str:
        return f"<Follow(follower={self.follower_id}, followed={self.followed_id})>"
