from fastapi import HTTPException, Request, status
from json import JSONDecodeError

from cms.context import Environment, RequestContext
from cms.services.auth_service import authenticate, bearer_token

JSON_CONTENT_TYPE = "application/json"

def get_environment(request: Request) -> Environment:
    return request.app.state.environment

def client_token(request: Request, environment: Environment):
    """Client address mixed into session keys, when binding is enabled"""
    if not environment.settings.SESSION_BIND_CLIENT or request.client is None:
        return None
    return request.client.host

async def decode_body(request: Request):
    """Decode JSON bodies; anything else stays an unread stream"""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type != JSON_CONTENT_TYPE:
        return None
    try:
        return await request.json()
    except (JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST)

async def get_request_context(request: Request) -> RequestContext:
    """
    Build the request context with the caller's identity attached

    Resolving identity never rejects the request; each handler decides
    whether it needs a user.
    """
    environment = get_environment(request)
    client = client_token(request, environment)

    user = await authenticate(
        environment.db,
        request.cookies.get(environment.settings.SESSION_COOKIE_NAME),
        bearer_token(request.headers),
        client
    )

    try:
        body = await decode_body(request)
    except HTTPException:
        # Anonymous callers get their 401 (or missing-field 400) from the handler
        if user:
            raise
        body = None

    return RequestContext(
        environment=environment,
        request=request,
        headers=request.headers,
        queries=request.query_params,
        user=user,
        body=body,
        client=client
    )
