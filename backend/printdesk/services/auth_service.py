# Overview: Service-layer operations for auth; accounts, bcrypt password hashing and login.

"""
Authentication Service

Every order is attributed to the account that placed it, so this is the
entry point for both self-service customer sign-up and admin provisioning.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters; must contain uppercase, lowercase, digit and special char
- Emails are stored lower-cased and are unique across all accounts
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..models.auth import ROLE_ADMIN, ROLE_CUSTOMER, VALID_ROLES
from ..time_utils import utcnow
from ..validation import ValidationError, StateConflictError, clean_text, require_text


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. Malformed hashes verify as False.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email) -> str:
    value = require_text("email", email).lower()
    if not EMAIL_PATTERN.match(value):
        raise ValidationError("email is not a valid address")
    return value


def create_user(
    *,
    email,
    password,
    first_name,
    last_name,
    phone=None,
    role: str = ROLE_CUSTOMER,
) -> User:
    """
    Create a new account.

    Raises:
        ValidationError: missing names, malformed email, unknown role
        PasswordValidationError: password doesn't meet requirements
        StateConflictError: email already registered
    """
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role '{role}'. Must be one of: {', '.join(VALID_ROLES)}")

    address = normalize_email(email)
    first = require_text("first_name", first_name)
    last = require_text("last_name", last_name)

    existing = db.session.query(User).filter(User.email == address).first()
    if existing:
        raise StateConflictError("Email already registered")

    user = User(
        first_name=first,
        last_name=last,
        email=address,
        phone=clean_text(phone),
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        created_at=utcnow(),
    )

    db.session.add(user)
    db.session.commit()
    return user


def register_customer(**fields) -> User:
    """Self-service sign-up; always creates a customer."""
    fields.pop("role", None)
    return create_user(role=ROLE_CUSTOMER, **fields)


def create_admin(**fields) -> User:
    fields.pop("role", None)
    return create_user(role=ROLE_ADMIN, **fields)


def authenticate(email, password) -> User | None:
    """
    Authenticate by email and password.

    Returns the User if credentials are valid and the account is active,
    None otherwise. Updates last_login_at on success.
    """
    address = clean_text(email).lower()
    if not address or not password:
        return None

    user = db.session.query(User).filter(
        User.email == address,
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def update_profile(
    user: User,
    *,
    first_name=None,
    last_name=None,
    email=None,
    phone=None,
    current_password=None,
    new_password=None,
) -> User:
    """
    Self-service profile edit.

    Omitted fields keep their stored values. The password changes only when
    both current_password and new_password are sent, and current_password
    must match. Orders keep the name and email cached when they were placed.

    Raises:
        ValidationError: blank names, malformed email, wrong current password
        PasswordValidationError: new password doesn't meet requirements
        StateConflictError: email already registered to another account
    """
    changes = {}
    if first_name is not None:
        changes["first_name"] = require_text("first_name", first_name)
    if last_name is not None:
        changes["last_name"] = require_text("last_name", last_name)
    if phone is not None:
        changes["phone"] = clean_text(phone)

    if email is not None:
        address = normalize_email(email)
        taken = db.session.query(User).filter(User.email == address, User.id != user.id).first()
        if taken:
            raise StateConflictError("Email already registered")
        changes["email"] = address

    if current_password and new_password:
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        changes["password_hash"] = hash_password(new_password)

    for field, value in changes.items():
        setattr(user, field, value)
    db.session.commit()
    return user
