"""
File router
Public raw download of stored files by key
"""

from fastapi import APIRouter, Depends

from cms import responses
from cms.context import RequestContext
from cms.controllers.base import DocumentParameters, is_response
from cms.middleware.auth_middleware import get_request_context

router = APIRouter()

FILES = "files"

def _parameters(key: str) -> DocumentParameters:
    # The full key, folder included, is the object name
    return DocumentParameters(model=FILES, name=key)

@router.head("/files/{key:path}")
async def file_exists(key: str, context: RequestContext = Depends(get_request_context)):
    if not key:
        return responses.not_found()

    controller = context.environment.controllers.resolve(FILES)
    if not await controller.exists(_parameters(key), context):
        return responses.not_found()
    return responses.no_content()

@router.get("/files/{key:path}")
async def download_file(key: str, context: RequestContext = Depends(get_request_context)):
    """
    Stream a file with its stored content type

    No credentials needed, so files can be linked from published pages.
    """
    if not key:
        return responses.not_found()

    controller = context.environment.controllers.resolve(FILES)
    result = await controller.get(_parameters(key), context)
    if result is None:
        return responses.not_found()
    if is_response(result):
        return result
    return responses.json(result)
