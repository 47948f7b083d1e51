"""
Bare-status HTTP responses shared by every route
"""
from typing import Any, Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse, Response

LAST_HEADER = "x-last"

def bad_request() -> Response:
    return Response(status_code=status.HTTP_400_BAD_REQUEST)

def unauthorized() -> Response:
    return Response(status_code=status.HTTP_401_UNAUTHORIZED)

def not_found() -> Response:
    return Response(status_code=status.HTTP_404_NOT_FOUND)

def conflict() -> Response:
    return Response(status_code=status.HTTP_409_CONFLICT)

def no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)

def created() -> Response:
    return Response(status_code=status.HTTP_201_CREATED)

def server_error() -> Response:
    return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

def success(result: Any) -> Response:
    """200 when a write reported success, 500 otherwise"""
    if result:
        return Response(status_code=status.HTTP_200_OK)
    return server_error()

def json(payload: Any, headers: Optional[Dict[str, Optional[str]]] = None) -> JSONResponse:
    """JSON body; headers with a None value are dropped"""
    headers = {name: value for name, value in (headers or {}).items() if value is not None}
    return JSONResponse(payload, headers=headers)

def page(results: list, last: Optional[str]) -> JSONResponse:
    """A list page, carrying the next cursor in the x-last header"""
    return json(results, {LAST_HEADER: last})
