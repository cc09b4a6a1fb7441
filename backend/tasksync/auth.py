"""
Firebase authentication for FastAPI routes and websockets.

Verifies Firebase ID tokens and maps the identity onto a ``users`` row,
creating the row the first time an identity is seen.
"""

import os
from pathlib import Path

import firebase_admin
from firebase_admin import auth, credentials
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tasksync.config import get_settings
from tasksync.database import get_session
from tasksync.models import User
from tasksync.logging_config import get_logger

logger = get_logger(__name__)


def _init_firebase() -> None:
    try:
        firebase_admin.get_app()
        return  # Already initialized
    except ValueError:
        pass

    # __file__ = backend/tasksync/auth.py -> .parent.parent = backend/
    backend_dir = Path(__file__).parent.parent

    possible_paths = []
    configured = get_settings().firebase_credentials_path
    if configured:
        possible_paths.append(Path(configured))
    possible_paths.extend([
        backend_dir / "serviceAccountKey.json",
        backend_dir / "firebase-service-account.json",
    ])
    possible_paths.extend(backend_dir.glob("*-firebase-adminsdk-*.json"))

    env_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
    if env_path:
        possible_paths.append(Path(env_path))

    for key_path in possible_paths:
        if key_path.exists() and key_path.is_file():
            cred = credentials.Certificate(str(key_path))
            firebase_admin.initialize_app(cred)
            logger.info(f"Firebase Admin SDK initialized with: {key_path.name}")
            return

    logger.warning("No Firebase service account key found! Token verification may fail.")
    firebase_admin.initialize_app()
    logger.info("Firebase Admin SDK initialized without credentials")


security = HTTPBearer()


class AuthenticatedUser:
    """Represents an authenticated user from Firebase."""

    def __init__(self, uid: str, email: str | None, name: str | None):
        self.uid = uid
        self.email = email
        self.name = name

    def __repr__(self):
        return f"AuthenticatedUser(uid={self.uid}, email={self.email})"


def verify_token(token: str) -> AuthenticatedUser:
    """
    Verify a Firebase ID token.

    Raises:
        auth.ExpiredIdTokenError, auth.InvalidIdTokenError, ValueError
    """
    _init_firebase()
    decoded_token = auth.verify_id_token(token)
    return AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        name=decoded_token.get("name"),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthenticatedUser:
    """
    Verify the bearer token and return the Firebase identity.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    try:
        user = verify_token(credentials.credentials)
        logger.debug(f"Authenticated user: {user.uid} ({user.email})")
        return user

    except auth.ExpiredIdTokenError:
        logger.warning("Expired Firebase token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        logger.warning("Invalid Firebase token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except Exception as e:
        logger.error(f"Authentication error: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def find_account(session: AsyncSession, uid: str) -> User | None:
    result = await session.execute(select(User).where(User.firebase_uid == uid))
    return result.scalars().first()


async def get_current_account(
    identity: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the caller's users row, provisioning it on first login."""
    account = await find_account(session, identity.uid)
    if account:
        return account

    email = identity.email or f"{identity.uid}@users.tasksync.local"
    account = User(
        firebase_uid=identity.uid,
        email=email,
        name=identity.name or email.split("@")[0],
    )
    session.add(account)
    await session.flush()
    await session.refresh(account)

    logger.info(f"Provisioned user {account.id} for Firebase uid {identity.uid}")
    return account
