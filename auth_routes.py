"""
Authentication Routes for Nexo Greencycle Backend
Handles email registration, login, logout and session lookup.

Every issued token carries a ``jti`` that points at a ``user_sessions`` row.
A token stops working as soon as its session is revoked (logout), even
before the JWT itself expires.
"""

from flask import Blueprint, request, jsonify, current_app
import jwt
import datetime
import logging
from functools import wraps
from typing import Optional

from models import db, User, UserSession, USER_TYPES, COMPANY_USER_TYPES, generate_uuid, utcnow
from extensions import limiter
from validators import validate_email, validate_phone, text_value
import catalog

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

# MARK: - Helper Functions


def _bearer_token() -> str:
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header.split(' ', 1)[1].strip()
    return ''


def generate_token(user_id, user_agent=None):
    """Open a session for ``user_id`` and return its signed JWT"""
    session = UserSession(id=generate_uuid(), user_id=user_id, user_agent=(user_agent or '')[:255] or None)
    db.session.add(session)
    db.session.commit()

    payload = {
        'user_id': user_id,
        'jti': session.id,
        'exp': datetime.datetime.now(datetime.timezone.utc)
        + datetime.timedelta(days=current_app.config['JWT_EXPIRY_DAYS'])
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm='HS256')


def decode_token(token) -> Optional[dict]:
    """Return the JWT payload if the signature and expiry check out"""
    if not token:
        return None
    try:
        return jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def resolve_session(token) -> Optional[UserSession]:
    """Return the live session behind ``token``, or None"""
    payload = decode_token(token)
    if not payload or not payload.get('jti'):
        return None
    session = db.session.get(UserSession, payload['jti'])
    if not session or not session.is_active or session.user_id != payload.get('user_id'):
        return None
    user = session.user
    if not user or user.status != 'active':
        return None
    return session


def verify_token(token):
    """Verify JWT token and return user_id"""
    session = resolve_session(token)
    return session.user_id if session else None


def require_auth(f):
    """Decorator to require authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = verify_token(_bearer_token())
        if not user_id:
            return jsonify({'error': 'Unauthorized'}), 401
        return f(user_id=user_id, *args, **kwargs)
    return decorated_function


def optional_auth(f):
    """Decorator that passes user_id if authenticated, None otherwise."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        user_id = verify_token(token) if token else None
        return f(user_id=user_id, *args, **kwargs)
    return decorated_function


def _validate_registration(data):
    """Return (cleaned_fields, error) for a registration body"""
    email = text_value(data.get('email')).strip().lower()
    password = text_value(data.get('password'))
    user_type = text_value(data.get('user_type')).strip() or 'producer'

    if not email or not password:
        return None, 'Email and password required'
    if not validate_email(email):
        return None, 'Invalid email address'
    if len(password) < MIN_PASSWORD_LENGTH:
        return None, 'Password must be at least {} characters'.format(MIN_PASSWORD_LENGTH)
    if user_type not in USER_TYPES:
        return None, 'user_type must be one of: {}'.format(', '.join(USER_TYPES))

    phone = text_value(data.get('phone')).strip()
    if phone and not validate_phone(phone):
        return None, 'Invalid phone number'

    company_id = None
    if user_type in COMPANY_USER_TYPES:
        company = catalog.get_company(data.get('company_id'))
        if not company:
            return None, 'Company accounts must select a registered company'
        company_id = company['id']

    return {
        'email': email,
        'password': password,
        'user_type': user_type,
        'company_id': company_id,
        'full_name': text_value(data.get('full_name')).strip() or None,
        'phone': phone or None,
        'location': text_value(data.get('location')).strip() or None,
        'license_number': text_value(data.get('license_number')).strip() or None,
    }, None


# MARK: - Email Authentication Routes

@auth_bp.route('/register', methods=['POST'])
@limiter.limit("3 per minute")
def register():
    """Create a producer or company account with email/password"""
    data = request.get_json(silent=True) or {}
    fields, error = _validate_registration(data)
    if error:
        return jsonify({'error': error}), 400

    if User.query.filter_by(email=fields['email']).first():
        return jsonify({'error': 'Email already registered'}), 409

    new_user = User(
        email=fields['email'],
        full_name=fields['full_name'],
        phone=fields['phone'],
        location=fields['location'],
        user_type=fields['user_type'],
        company_id=fields['company_id'],
        license_number=fields['license_number'],
    )
    new_user.set_password(fields['password'])
    db.session.add(new_user)
    db.session.commit()

    # --- Send welcome email ---
    try:
        from notifications import send_welcome_email
        send_welcome_email(new_user.email, new_user.display_name, new_user.user_type)
    except Exception:
        logger.exception("Welcome email failed for user %s", new_user.id)

    token = generate_token(new_user.id, request.headers.get('User-Agent'))

    return jsonify({
        'success': True,
        'token': token,
        'user': new_user.to_dict()
    }), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute")
def login():
    """Login with email and password"""
    data = request.get_json(silent=True) or {}
    email = text_value(data.get('email')).strip().lower()
    password = text_value(data.get('password'))

    if not email or not password:
        return jsonify({'error': 'Email and password required'}), 400

    db_user = User.query.filter_by(email=email).first()
    if not db_user or not db_user.check_password(password):
        return jsonify({'error': 'Invalid email or password'}), 401
    if db_user.status != 'active':
        return jsonify({'error': 'Account is deactivated'}), 403

    token = generate_token(db_user.id, request.headers.get('User-Agent'))
    return jsonify({
        'success': True,
        'token': token,
        'user': db_user.to_dict()
    })


@auth_bp.route('/logout', methods=['POST'])
@require_auth
def logout(user_id):
    """Revoke the session behind the presented token"""
    session = resolve_session(_bearer_token())
    if session:
        session.revoked_at = utcnow()
        db.session.commit()
    return jsonify({'success': True, 'message': 'Signed out'})


# MARK: - Session

@auth_bp.route('/session', methods=['GET'])
def get_session():
    """Resolve the current session on app load; never 401s"""
    session = resolve_session(_bearer_token())
    if not session:
        return jsonify({'authenticated': False, 'user': None})
    return jsonify({'authenticated': True, 'user': session.user.to_dict()})


@auth_bp.route('/me', methods=['GET'])
@require_auth
def get_current_user(user_id):
    """Get current authenticated user profile"""
    db_user = db.session.get(User, user_id)
    if not db_user:
        return jsonify({'error': 'User not found'}), 404

    user = db_user.to_dict()
    if db_user.company_id is not None:
        user['company'] = catalog.get_company(db_user.company_id)
    return jsonify({'success': True, 'user': user})


@auth_bp.route('/me', methods=['PUT'])
@require_auth
def update_profile(user_id):
    """Update current user profile (full name, phone, location)"""
    db_user = db.session.get(User, user_id)
    if not db_user:
        return jsonify({'error': 'User not found'}), 404

    data = request.get_json(silent=True) or {}

    for field in ('full_name', 'phone', 'location'):
        if field in data and data[field] is not None:
            setattr(db_user, field, str(data[field]).strip() or getattr(db_user, field))

    db.session.commit()

    return jsonify({
        'success': True,
        'user': db_user.to_dict()
    })


@auth_bp.route('/change-password', methods=['PUT'])
@require_auth
def change_password(user_id):
    """Change the current user's password"""
    db_user = db.session.get(User, user_id)
    if not db_user:
        return jsonify({'error': 'User not found'}), 404

    data = request.get_json(silent=True) or {}
    current_password = text_value(data.get('current_password'))
    new_password = text_value(data.get('new_password'))

    if not current_password or not new_password:
        return jsonify({'error': 'Current password and new password are required'}), 400

    if not db_user.check_password(current_password):
        return jsonify({'error': 'Current password is incorrect'}), 401

    if len(new_password) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': 'New password must be at least {} characters'.format(MIN_PASSWORD_LENGTH)}), 400

    db_user.set_password(new_password)
    db.session.commit()

    return jsonify({
        'success': True,
        'message': 'Password changed successfully'
    })
