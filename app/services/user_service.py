import logging
from sqlmodel import Session

from app.models.user import User
from app.utils.token import Identity

logger = logging.getLogger(__name__)


def ensure_user(session: Session, identity: Identity) -> User:
    """Create the buyer row on first checkout. Safe to call repeatedly."""
    user = session.get(User, identity.user_id)
    if user:
        return user

    user = User(
        id=identity.user_id,
        name=identity.name or "User",
        email=identity.email or "",
        image=identity.image,
    )
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"Created buyer record {user.id}")
    return user
