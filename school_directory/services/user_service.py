"""
User accounts: sign-up, sign-in, password reset and role management.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import uuid

from sqlalchemy import func, or_

from school_directory.models import User, UserRole
from school_directory.services.errors import NotFoundError, ValidationError
from school_directory.services.row_store import RowStore
from school_directory.utils.auth import fingerprint_matches, hash_password, verify_password

logger = logging.getLogger(__name__)


async def get_user_by_email(store: RowStore, email: str) -> Optional[User]:
    users = await store.select(User, func.lower(User.email) == email.lower())
    return users[0] if users else None


async def create_user(
    store: RowStore,
    email: str,
    password: str,
    display_name: Optional[str] = None,
    role: UserRole = UserRole.USER,
) -> User:
    if await get_user_by_email(store, email):
        raise ValidationError(f"An account with email {email} already exists")

    (user,) = await store.insert(User, [{
        "email": email,
        "display_name": display_name.strip() if display_name and display_name.strip() else None,
        "password_hash": hash_password(password),
        "role": UserRole(role).value,
    }])
    await store.commit()
    logger.info(f"Created {user.role} account {user.id}")
    return user


async def authenticate(store: RowStore, email: str, password: str) -> Optional[User]:
    """
    Check credentials and stamp last_sign_in_at.

    Returns:
        User if the password matches, otherwise None
    """
    user = await get_user_by_email(store, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning(f"Failed sign-in attempt for {email}")
        return None

    user.last_sign_in_at = datetime.now(timezone.utc)
    await store.commit()
    return user


async def reset_password(store: RowStore, user_id: uuid.UUID, password_fingerprint: str, new_password: str) -> User:
    user = await store.get(User, user_id)
    if user is None or not fingerprint_matches(user.password_hash, password_fingerprint):
        raise ValidationError("Reset link is invalid or has already been used")

    user.password_hash = hash_password(new_password)
    await store.commit()
    logger.info(f"Password reset for user {user.id}")
    return user


async def list_users(store: RowStore, search: Optional[str] = None) -> Tuple[List[User], Dict[str, int]]:
    """
    List users newest first, optionally filtered by email or display name.

    Returns:
        tuple: (users, counts per role across the returned users)
    """
    criteria = []
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        criteria.append(or_(User.email.ilike(pattern), User.display_name.ilike(pattern)))

    users = await store.select(User, *criteria, order_by=[User.created_at.desc(), User.email.asc()])

    role_counts = {role.value: 0 for role in UserRole}
    for user in users:
        role_counts[user.role] = role_counts.get(user.role, 0) + 1
    return users, role_counts


async def set_role(store: RowStore, user_id: Any, role: UserRole) -> User:
    user = await store.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} does not exist")

    user.role = UserRole(role).value
    await store.commit()
    logger.info(f"User {user_id} role set to {user.role}")
    return user
