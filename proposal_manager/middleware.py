"""Middleware for authentication and the per-request session context."""
from functools import wraps
from typing import Optional

from flask import session, g, jsonify, current_app

from proposal_manager.database import get_session
from proposal_manager.exceptions import UnauthorizedError
from proposal_manager.models import AppUser, AppRole


class SessionContext:
    """
    Identity of the current request.

    Built from the Flask session at the start of every request and cleared
    by end() on logout.
    """

    def __init__(self, user: Optional[AppUser] = None, role: Optional[AppRole] = None):
        self.user = user
        self.role = role

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.role is AppRole.ADMIN

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user else None

    @classmethod
    def init(cls) -> 'SessionContext':
        """Load the logged-in user (if any) from the Flask session."""
        from proposal_manager.services.auth_service import get_user_role

        context = cls()
        user_id = session.get('user_id')
        if user_id:
            db_session = get_session()
            user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
            if user:
                context.user = user
                context.role = get_user_role(db_session, user.id)
            else:
                session.pop('user_id', None)
        return context

    def begin(self, user: AppUser, role: AppRole) -> None:
        """Start an authenticated session for user."""
        session.clear()
        session['user_id'] = user.id
        session.permanent = True
        self.user = user
        self.role = role

    def end(self) -> None:
        """Forget the user, in the Flask session and in this context."""
        session.clear()
        self.user = None
        self.role = None

    def to_dict(self):
        return {
            'authenticated': self.is_authenticated,
            'user': self.user.to_dict() if self.user else None,
            'role': self.role.value if self.role else None,
            'is_admin': self.is_admin,
        }


def load_session_context():
    """before_request hook: expose the SessionContext as g.ctx."""
    try:
        g.ctx = SessionContext.init()
    except Exception as e:
        current_app.logger.error(f"Error loading session context: {e}")
        g.ctx = SessionContext()


def require_login(f):
    """Decorator: JSON 401 unless a user is logged in."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        ctx = g.get('ctx')
        if ctx is None or not ctx.is_authenticated:
            return jsonify({'status': 'error', 'message': 'Faça login para continuar.'}), 401
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """Decorator: UnauthorizedError (403) unless the logged-in user is an admin. Use after require_login."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        ctx = g.get('ctx')
        if ctx is None or not ctx.is_admin:
            raise UnauthorizedError('Acesso restrito a administradores.')
        return f(*args, **kwargs)
    return decorated_function
