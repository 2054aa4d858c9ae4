"""
Authentication service for user management.

Handles password login, role lookup and user provisioning.
"""
import logging
import re
from typing import Optional

from sqlalchemy.exc import IntegrityError

from proposal_manager.models import AppUser, UserRole, AppRole
from proposal_manager.exceptions import ValidationError, ConflictError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
MIN_PASSWORD_LENGTH = 6


def authenticate(session, email: str, password: str) -> Optional[AppUser]:
    """
    Check email/password credentials.

    Returns:
        AppUser when the credentials match an active user, else None
    """
    email = (email or '').strip().lower()
    user = session.query(AppUser).filter_by(email=email, active=True).first()

    if not user or not user.check_password(password or ''):
        logger.warning(f"Failed login attempt for {email}")
        return None

    logger.info(f"User {user.id} logged in")
    return user


def get_user_role(session, user_id: int) -> AppRole:
    """Role of a user; users without an assignment are plain users."""
    assignment = session.query(UserRole).filter_by(user_id=user_id).first()
    if assignment is None:
        return AppRole.USER
    try:
        return AppRole(assignment.role)
    except ValueError:
        logger.warning(f"Unknown role {assignment.role!r} for user {user_id}")
        return AppRole.USER


def create_user(session, email: str, password: str, full_name: Optional[str] = None,
                admin: bool = False) -> AppUser:
    """
    Create an active user and its role assignment.

    Raises:
        ValidationError: invalid email or short password
        ConflictError: email already registered
    """
    email = (email or '').strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError('Email inválido. Use o formato usuario@exemplo.com')
    if len(password or '') < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.')

    if session.query(AppUser).filter_by(email=email).first():
        raise ConflictError(f'Já existe um usuário com o email {email}.')

    user = AppUser(email=email, full_name=full_name, active=True)
    user.set_password(password)
    user.role_assignment = UserRole(role=(AppRole.ADMIN if admin else AppRole.USER).value)

    try:
        session.add(user)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.error(f"Error creating user {email}: {e}")
        raise ConflictError(f'Já existe um usuário com o email {email}.') from e

    logger.info(f"User {user.id} created (role={user.role_assignment.role})")
    return user
