"""
Users router
Account creation and removal; listing goes through the model routes
"""
from fastapi import APIRouter, Depends
from pydantic import ValidationError

from cms import responses
from cms.context import RequestContext
from cms.controllers.base import DocumentParameters
from cms.controllers.users import normalize_email
from cms.middleware.auth_middleware import get_request_context
from cms.models.user import UserCreate

router = APIRouter()

USERS = "users"

@router.post("/users")
async def create_user(context: RequestContext = Depends(get_request_context)):
    """Create an account; 409 if the email is taken"""
    if not context.user:
        return responses.unauthorized()

    try:
        payload = UserCreate.model_validate(context.body or {})
    except ValidationError:
        return responses.bad_request()

    controller = context.environment.controllers.resolve(USERS)
    created = await controller.put(
        DocumentParameters(model=USERS, name=payload.email, modified_by=context.user),
        context
    )
    if not created:
        return responses.server_error()
    return responses.created()

@router.delete("/users")
async def delete_user(context: RequestContext = Depends(get_request_context)):
    """Remove an account and its sessions; users cannot remove themselves"""
    if not context.user:
        return responses.unauthorized()

    email = context.queries.get("email") or context.queries.get("name")
    if not email:
        return responses.bad_request()

    email = normalize_email(email)
    if email == context.user:
        return responses.bad_request()

    controller = context.environment.controllers.resolve(USERS)
    parameters = DocumentParameters(model=USERS, name=email)
    if not await controller.exists(parameters, context):
        return responses.not_found()
    return responses.success(await controller.delete(parameters, context))
