"""
Authentication service
Email verification codes, sessions and the credential gate
"""

import hashlib
import logging
import secrets
import string
import time
from typing import Mapping, Optional

from cms.config import Settings

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "Bearer "

def now() -> int:
    """Current time as integer epoch seconds"""
    return int(time.time())

def generate_verification_code(length: int) -> str:
    """Fixed-length random numeric code"""
    return "".join(secrets.choice(string.digits) for _ in range(length))

def generate_key() -> str:
    """Random key for sessions and permanent user access keys"""
    return secrets.token_urlsafe(32)

def session_key(key: str, client: Optional[str] = None) -> str:
    """
    Key under which a session is stored

    With a client token the stored key is a digest of both, so a cookie
    replayed from another origin does not resolve.
    """
    if not client:
        return key
    return hashlib.sha256(f"{key}:{client}".encode("utf-8")).hexdigest()

def bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    authorization = headers.get("authorization")
    if authorization and authorization.startswith(TOKEN_PREFIX):
        return authorization[len(TOKEN_PREFIX):] or None
    return None

async def authenticate(
    db,
    session: Optional[str],
    token: Optional[str],
    client: Optional[str] = None
) -> Optional[str]:
    """
    Resolve credentials to a user email

    Args:
        db: Database handle
        session: Raw session cookie value
        token: Bearer token (a user's permanent key)
        client: Client-identifying token mixed into session keys

    Returns:
        The user's email, or None when not authenticated. Never raises for
        missing or unknown credentials.
    """
    if not session and not token:
        return None

    if session:
        found = await db.sessions.find_one({
            "key": session_key(session, client),
            "expires_at": {"$gt": now()}
        })
        if not found:
            return None
        user = await db.users.find_one({"email": found["email"]}, {"email": 1})
    else:
        user = await db.users.find_one({"key": token}, {"email": 1})

    if not user:
        return None
    return user["email"]

async def issue_verification(db, email: str, settings: Settings) -> Optional[str]:
    """
    Give a user a pending verification code

    An unexpired code is kept as-is so a second request cannot reset a
    code already in flight.

    Returns:
        The pending code, or None if no such user exists
    """
    current = now()
    await db.users.update_one(
        {
            "email": email,
            "$or": [
                {"verification_expires_at": None},
                {"verification_expires_at": {"$lte": current}}
            ]
        },
        {
            "$set": {
                "verification": generate_verification_code(settings.VERIFICATION_CODE_LENGTH),
                "verification_expires_at": current + settings.VERIFICATION_EXPIRE_SECONDS
            }
        }
    )

    user = await db.users.find_one({"email": email}, {"verification": 1})
    if not user:
        return None
    return user.get("verification")

async def redeem_verification(db, email: str, verification: str) -> bool:
    """
    Consume a matching, unexpired code

    Codes are single-use: the code is cleared in the same update that
    matches it.
    """
    result = await db.users.update_one(
        {
            "email": email,
            "verification": verification,
            "verification_expires_at": {"$gt": now()}
        },
        {"$set": {"verification": None, "verification_expires_at": None}}
    )
    return result.modified_count == 1

async def create_session(db, email: str, settings: Settings, client: Optional[str] = None) -> str:
    """
    Mint a session for a verified user

    Expired sessions of the same user are purged first. Other live sessions
    are left alone.

    Returns:
        Raw session key for the cookie
    """
    current = now()
    await db.sessions.delete_many({"email": email, "expires_at": {"$lt": current}})

    key = generate_key()
    await db.sessions.insert_one({
        "key": session_key(key, client),
        "email": email,
        "expires_at": current + settings.SESSION_EXPIRE_SECONDS
    })

    logger.info(f"Session created for {email}")
    return key

async def delete_session(db, session: str, client: Optional[str] = None) -> bool:
    result = await db.sessions.delete_one({"key": session_key(session, client)})
    return result.deleted_count == 1
