"""Authentication utilities for ChoreQuest.

ChoreQuest runs behind an authenticating reverse proxy that passes the
signed-in user's email in the X-Auth-User header (and optionally a display
name in X-Auth-Name). Unknown users are created on first sight.
"""

import logging
from functools import wraps

from flask import g, jsonify, request
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

USER_HEADER = 'X-Auth-User'
NAME_HEADER = 'X-Auth-Name'


def auth_required(f):
    """Decorator to ensure the request carries an authenticated user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if getattr(g, 'auth_email', None) is None:
            return jsonify({
                'error': 'Unauthorized',
                'message': 'Authentication required'
            }), 401

        if get_current_user() is None:
            return jsonify({
                'error': 'Unauthorized',
                'message': 'User not found in database'
            }), 401

        return f(*args, **kwargs)
    return decorated_function


def household_admin_required(f):
    """Decorator to ensure the user administers at least one household."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if user is None:
            return jsonify({
                'error': 'Unauthorized',
                'message': 'Authentication required'
            }), 401

        if not any(m.is_admin for m in user.memberships):
            return jsonify({
                'error': 'Forbidden',
                'message': 'Household admin privileges required'
            }), 403

        return f(*args, **kwargs)
    return decorated_function


def get_current_user():
    """
    Get the current authenticated user from the database.

    Returns:
        User: Current user object or None if not found
    """
    from chorequest.models import User

    email = getattr(g, 'auth_email', None)
    if email is None:
        return None

    # Cache the lookup in g to avoid repeated DB queries within the same request
    if getattr(g, 'cached_auth_email', None) != email:
        g.current_user = User.query.filter_by(email=email).first()
        g.cached_auth_email = email

    return g.current_user


def auto_create_user(email: str, name: str = None):
    """
    Create a user profile the first time an authenticated email is seen.

    Safe to call on every request: returns None if the user already exists
    or if another request created it concurrently.

    Args:
        email: Authenticated email from the proxy header
        name: Optional display name (defaults to the email's local part)

    Returns:
        User: The created user, or None
    """
    from chorequest.models import db, User

    if User.query.filter_by(email=email).first():
        return None

    user = User(email=email, name=name or email.split('@')[0])
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Race condition - another request created the user simultaneously
        db.session.rollback()
        logger.debug(f"User {email} already exists (race condition)")
        return None

    logger.info(f"Auto-created user: {user.name} ({email})")
    return user


def load_current_user():
    """before_request hook: read the proxy header into g."""
    email = request.headers.get(USER_HEADER)
    if email:
        email = email.strip().lower()
        g.auth_email = email
        auto_create_user(email, request.headers.get(NAME_HEADER))
    else:
        g.auth_email = None
