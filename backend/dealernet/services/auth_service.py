# Overview: Service-layer operations for auth; password hashing, login and account creation.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

HIERARCHY: accounts record who created them (created_by_id). The creator's
role must be allowed to create the new role (ROLE_CREATORS): admins create
admins, stalkists and dealers; stalkists create dealers; dealers create
salesmen.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..models import User
from ..errors import Conflict, NotFound, ValidationError
from ..permissions import ROLE_CREATORS, Role, normalize_role
from dealernet.time_utils import utcnow


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash password using bcrypt (cost factor 12 by default).

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including a
    malformed stored hash).
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(
    name: str,
    email: str,
    password: str,
    role: str,
    created_by_id: int | None = None,
    *,
    bcrypt_rounds: int = 12,
) -> User:
    """
    Create a new user in the reseller hierarchy.

    Args:
        name: Display name
        email: Unique login email (case-insensitive)
        password: Password meeting strength requirements
        role: Role string; aliases are normalized (e.g. "dellear" -> "dealer")
        created_by_id: Creating account. Required for every role except the
            first admin bootstrapped from the CLI.

    Raises:
        ValidationError: bad role, email, name or password
        NotFound: creator does not exist
        Conflict: email already registered, or creator may not create this role
    """
    try:
        role = normalize_role(role)
    except ValueError as e:
        raise ValidationError(str(e))

    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")

    email = (email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("A valid email is required")

    if created_by_id is not None:
        creator = db.session.get(User, created_by_id)
        if creator is None:
            raise NotFound("Creating user not found")
        if creator.role not in ROLE_CREATORS[role]:
            raise Conflict(f"A {creator.role} cannot create {role} accounts")
    elif role != Role.ADMIN:
        raise ValidationError(f"{role} accounts must have a creating user")

    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        raise Conflict("Email already registered")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        role=role,
        created_by_id=created_by_id,
        is_active=True,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid and the account is active, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == (email or "").strip().lower(),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
