"""User mirror table.

Accounts are owned by the external identity store; this table mirrors the
id and email so checkout and webhook handling can resolve an owner.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from shared.database import Base, new_id


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(254), unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"


def find_user_by_email(session: Session, email: str) -> User | None:
    """Case-insensitive lookup by email address."""
    normalized = email.strip().lower()
    if not normalized:
        return None
    return session.scalar(select(User).where(func.lower(User.email) == normalized))


def sync_user(session: Session, user_id: str, email: str | None) -> User | None:
    """Mirror an authenticated identity into ``users``.

    Returns the mirrored user, or None when there is no email to record or
    the email already belongs to a different id.
    """
    user = session.get(User, user_id)
    normalized = (email or "").strip().lower()
    if not normalized:
        return user

    holder = find_user_by_email(session, normalized)
    if holder is not None and holder.id != user_id:
        return user

    if user is None:
        user = User(id=user_id, email=normalized)
        session.add(user)
    else:
        user.email = normalized
    session.flush()
    return user
