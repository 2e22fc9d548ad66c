"""
Access control gate.

Callers authenticate with an opaque token, sent either as
``Authorization: Bearer <token>`` or ``x-auth-token: <token>``. Flask-Login
resolves it to a ``User`` on every request; nothing is kept in the session.

The officiating checks take the acting user explicitly so the game manager
never reads ambient request state.
"""
import logging
from functools import wraps

from flask import jsonify
from flask_login import LoginManager, current_user

from .errors import Forbidden
from .models import db, Role, User

logger = logging.getLogger(__name__)

login_manager = LoginManager()


def _token_from_request(request):
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    return request.headers.get('x-auth-token', '').strip()


@login_manager.request_loader
def load_user_from_request(request):
    token = _token_from_request(request)
    if not token:
        return None
    user = User.query.filter_by(api_token=token).first()
    if user is None:
        logger.info("Rejected unknown API token")
    return user


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'msg': 'No token, authorization denied'}), 401


def roles_required(*roles: Role):
    """Reject callers whose role is not one of ``roles``.

    Must sit below ``login_required`` so ``current_user`` is authenticated.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if current_user.role not in roles:
                raise Forbidden('Access denied')
            return view(*args, **kwargs)
        return wrapped
    return decorator


def ensure_can_officiate(user: User, game, action: str = 'verify'):
    """Admins may officiate any game; referees only the games assigned to them."""
    role = user.role
    if role is Role.ADMIN:
        return
    if role is Role.REFEREE:
        if game.referee_id is not None and game.referee_id == user.id:
            return
        raise Forbidden(f'Only the assigned referee can {action} this game')
    if role is Role.USER:
        raise Forbidden('Access denied')
    raise Forbidden(f'Unknown role {role!r}')


def ensure_admin(user: User):
    role = user.role
    if role is Role.ADMIN:
        return
    if role in (Role.REFEREE, Role.USER):
        raise Forbidden('Admin access required')
    raise Forbidden(f'Unknown role {role!r}')
