"""
Users controller
Accounts are not documents: create-only, keyed by email, no folders
"""
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from pymongo import ASCENDING

from cms.context import RequestContext
from cms.controllers.base import Controller, DocumentParameters, ListParameters
from cms.errors import ConflictError, InvalidCursor, InvalidInput, OperationNotSupported
from cms.models.user import UserCreate
from cms.services.auth_service import generate_key, now
from cms.services.pagination import ListResult, decode_cursor, last_cursor, prefix_filter

logger = logging.getLogger(__name__)

def normalize_email(value: str) -> str:
    """
    Canonical form of an account email, as the login routes see it

    Raises:
        InvalidInput: if the value is not an email address
    """
    try:
        return UserCreate(email=value).email
    except ValidationError as e:
        raise InvalidInput(f"Invalid email: {value!r}") from e

class UsersController(Controller):

    async def list(self, parameters: ListParameters, context: RequestContext) -> ListResult:
        query: Dict[str, Any] = {}
        if parameters.prefix:
            query["email"] = prefix_filter(parameters.prefix)
        if parameters.after:
            (email,) = decode_cursor(parameters.after, 1)
            if not isinstance(email, str):
                raise InvalidCursor(f"Malformed cursor: {parameters.after!r}")
            query.setdefault("email", {})["$gt"] = email

        cursor = context.db.users.find(query, {"email": 1}).sort("email", ASCENDING).limit(parameters.limit)
        rows = await cursor.to_list(length=parameters.limit)

        return ListResult(
            results=[{"name": row["email"]} for row in rows],
            last=last_cursor(rows, parameters.limit, "email")
        )

    async def exists(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        email = normalize_email(parameters.name)
        return await context.db.users.find_one({"email": email}, {"_id": 1}) is not None

    async def get(self, parameters: DocumentParameters, context: RequestContext) -> Optional[Dict[str, Any]]:
        email = normalize_email(parameters.name)
        user = await context.db.users.find_one({"email": email}, {"email": 1, "created_at": 1})
        if not user:
            return None
        return {"name": user["email"], "email": user["email"], "created_at": user.get("created_at")}

    async def put(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        """
        Create an account with a fresh permanent access key

        Raises:
            OperationNotSupported: for rename, move or folder writes
            InvalidInput: if the name is not an email address
            ConflictError: if the email is already registered
        """
        if parameters.rename or parameters.move is not None or parameters.folder:
            raise OperationNotSupported("Users cannot be renamed or filed")

        email = normalize_email(parameters.name)
        if await self.exists(parameters, context):
            raise ConflictError(f"User {email} already exists")

        await context.db.users.insert_one({
            "email": email,
            "key": generate_key(),
            "created_at": now(),
            "created_by": parameters.modified_by
        })
        logger.info(f"User {email} created by {parameters.modified_by}")
        return True

    async def delete(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        """Remove the account and every session it holds"""
        email = normalize_email(parameters.name)
        result = await context.db.users.delete_one({"email": email})
        await context.db.sessions.delete_many({"email": email})
        logger.info(f"User {email} deleted")
        return result.deleted_count == 1
