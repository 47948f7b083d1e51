"""
Authentication router
Email verification codes and cookie sessions
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from pydantic import ValidationError
import logging

from cms import responses
from cms.context import RequestContext
from cms.middleware.auth_middleware import get_request_context
from cms.models.user import SessionCreate, VerificationRequest
from cms.services.auth_service import (
    create_session as mint_session,
    delete_session as drop_session,
    issue_verification,
    redeem_verification
)

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/verification")
async def request_verification(context: RequestContext = Depends(get_request_context)):
    """
    Email a login code

    Unknown emails get the same 204 so the endpoint does not reveal which
    accounts exist.
    """
    try:
        payload = VerificationRequest.model_validate(context.body or {})
    except ValidationError:
        return responses.bad_request()

    environment = context.environment
    code = await issue_verification(environment.db, payload.email, environment.settings)
    if code is None:
        logger.info(f"Verification requested for unknown email {payload.email}")
        return responses.no_content()

    await environment.mailer.send(
        payload.email,
        environment.settings.EMAIL_SUBJECT,
        f"Verification code: {code}"
    )
    return responses.no_content()

@router.get("/session")
async def get_session(context: RequestContext = Depends(get_request_context)):
    """Who is logged in"""
    if not context.user:
        return responses.unauthorized()
    return responses.json({"email": context.user})

@router.post("/session")
async def create_session(context: RequestContext = Depends(get_request_context)):
    """
    Exchange (email, code) for a session cookie

    Returns 401 for a wrong or expired code without creating anything.
    """
    try:
        payload = SessionCreate.model_validate(context.body or {})
    except ValidationError:
        return responses.bad_request()

    environment = context.environment
    if not await redeem_verification(environment.db, payload.email, payload.verification):
        return responses.unauthorized()

    key = await mint_session(environment.db, payload.email, environment.settings, context.client)

    response = Response(status_code=status.HTTP_201_CREATED)
    response.set_cookie(
        environment.settings.SESSION_COOKIE_NAME,
        key,
        max_age=environment.settings.SESSION_EXPIRE_SECONDS,
        httponly=True,
        samesite="strict"
    )
    return response

@router.delete("/session")
async def delete_session(context: RequestContext = Depends(get_request_context)):
    """Log out the current session only; other sessions stay valid"""
    if not context.user:
        return responses.unauthorized()

    session = context.request.cookies.get(context.settings.SESSION_COOKIE_NAME)
    if not session:
        return responses.bad_request()

    response = responses.success(await drop_session(context.db, session, context.client))
    response.delete_cookie(context.settings.SESSION_COOKIE_NAME)
    return response
