"""
Authentication router.
Handles registration, login, logout and the principal dependencies
the other routers use.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import bcrypt
from jose import JWTError, jwt

from renotefy.config import get_settings
from renotefy.database import get_database
from renotefy.identity import Principal, normalize_email
from renotefy.models.user import TokenResponse, User, UserCreate, UserLogin, UserResponse
from renotefy.notes import NoteRepository
from renotefy.sessions import get_session_registry
from renotefy.utils.validators import validate_password

logger = logging.getLogger(__name__)
router = APIRouter()

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


# ============================================================
# Password Hashing
# ============================================================
def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    # Stored as a UTF-8 string like: "$2b$12$..."
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ============================================================
# JWT Token Management
# ============================================================
def create_access_token(user_id: str) -> str:
    """Create a JWT access token for a user."""
    settings = get_settings()

    now = datetime.utcnow()
    payload = {
        "sub": user_id,
        "exp": now + timedelta(hours=settings.jwt_expiration_hours),
        "iat": now,
    }

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def principal_from_token(token: str) -> Principal:
    """
    Resolve a bearer token to the principal it was issued for.
    Raises HTTPException 401 if the token is invalid or the user is gone.
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(status_code=401, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    db = get_database()
    user = await db.users.find_one({"_id": user_id})

    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return User.from_doc(user).to_principal()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Principal:
    """Dependency for routes that require a signed-in principal."""
    return await principal_from_token(credentials.credentials)


async def get_repository(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
) -> NoteRepository:
    """
    Repository for the caller's session.
    Requests without a token get an anonymous session.
    """
    registry = get_session_registry()
    if credentials is None:
        return await registry.anonymous()
    principal = await principal_from_token(credentials.credentials)
    return await registry.open(credentials.credentials, principal)


async def require_repository(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> NoteRepository:
    """Like get_repository, but a bearer token is mandatory."""
    principal = await principal_from_token(credentials.credentials)
    return await get_session_registry().open(credentials.credentials, principal)


def _token_response(user: User, token: str) -> TokenResponse:
    return TokenResponse(
        access_token=token,
        user=user.to_response(),
        expires_in=get_settings().jwt_expiration_hours * 3600,
    )


# ============================================================
# Endpoints
# ============================================================
@router.post("/register", response_model=TokenResponse)
async def register(user_data: UserCreate) -> TokenResponse:
    """Register a new user account."""
    valid, message = validate_password(user_data.password)
    if not valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    db = get_database()
    email = normalize_email(user_data.email)

    # Check if email already exists
    existing = await db.users.find_one({"email": email})
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user_doc = {
        "email": email,
        "name": user_data.name,
        "passwordHash": hash_password(user_data.password),
        "createdAt": datetime.utcnow(),
    }

    user_id = await db.users.insert_one(user_doc)
    logger.info(f"Registered user {user_id}")

    user = User.from_doc({**user_doc, "_id": user_id})
    return _token_response(user, create_access_token(user_id))


@router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin) -> TokenResponse:
    """Login with email and password."""
    db = get_database()

    doc = await db.users.find_one({"email": normalize_email(credentials.email)})

    if not doc or not verify_password(credentials.password, doc["passwordHash"]):
        logger.warning(f"Failed login for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    user = User.from_doc(doc)
    token = create_access_token(user.id)
    await get_session_registry().open(token, user.to_principal())

    return _token_response(user, token)


@router.post("/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Sign the session out and drop its caches."""
    await get_session_registry().close(credentials.credentials)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: Principal = Depends(get_current_user)) -> UserResponse:
    """Get current authenticated user's profile."""
    db = get_database()
    doc = await db.users.find_one({"_id": current_user.id})
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    return User.from_doc(doc).to_response()
