"""
Model router
Generic CRUD and listing for every model, dispatched to its controller
"""
from fastapi import APIRouter, Depends
from typing import Optional

from cms import responses
from cms.context import RequestContext
from cms.controllers.base import DocumentParameters, ListParameters, is_response
from cms.middleware.auth_middleware import get_request_context
from cms.services.pagination import parse_limit

router = APIRouter()

TRUTHY = {"1", "true", "yes", "on"}

def list_parameters(model: str, context: RequestContext) -> ListParameters:
    """
    Read folder/prefix/limit/after from the query string

    Raises:
        ValueError: if limit is not a positive integer
    """
    queries = context.queries
    settings = context.settings
    return ListParameters(
        model=model,
        folder=queries.get("folder") or None,
        prefix=queries.get("prefix") or None,
        limit=parse_limit(queries.get("limit"), settings.DEFAULT_LIST_LIMIT, settings.MAX_LIST_LIMIT),
        after=queries.get("after") or None
    )

def document_parameters(model: str, context: RequestContext, value=None) -> Optional[DocumentParameters]:
    """Item address and write options, or None when no name was given"""
    queries = context.queries
    name = queries.get("name")
    if not name:
        return None

    return DocumentParameters(
        model=model,
        name=name,
        folder=queries.get("folder") or None,
        value=value,
        modified_by=context.user,
        rename=queries.get("rename") or None,
        move=queries.get("move"),
        overwrite=queries.get("overwrite", "").lower() in TRUTHY
    )

@router.get("/{model}/folders")
async def list_folders(model: str, context: RequestContext = Depends(get_request_context)):
    """Distinct folder names of a model"""
    if not context.user:
        return responses.unauthorized()

    controller = context.environment.controllers.resolve(model)
    return responses.json(await controller.list_folders(ListParameters(model=model), context))

@router.head("/{model}")
async def document_exists(model: str, context: RequestContext = Depends(get_request_context)):
    if not context.user:
        return responses.unauthorized()

    controller = context.environment.controllers.resolve(model)
    parameters = document_parameters(model, context)
    if parameters is None:
        return responses.bad_request()

    if not await controller.exists(parameters, context):
        return responses.not_found()
    return responses.no_content()

@router.get("/{model}")
async def get_document(model: str, context: RequestContext = Depends(get_request_context)):
    """
    Fetch one item by `name`, or list the model when no name is given

    Lists return a JSON array; the `x-last` header carries the cursor for
    the next page and is absent on the last one.
    """
    if not context.user:
        return responses.unauthorized()

    controller = context.environment.controllers.resolve(model)

    if "name" not in context.queries:
        try:
            parameters = list_parameters(model, context)
        except ValueError:
            return responses.bad_request()

        result = await controller.list(parameters, context)
        return responses.page(result.results, result.last)

    parameters = document_parameters(model, context)
    if parameters is None:
        return responses.bad_request()

    result = await controller.get(parameters, context)
    if result is None:
        return responses.not_found()
    if is_response(result):
        return result
    return responses.json(result)

@router.put("/{model}")
async def put_document(model: str, context: RequestContext = Depends(get_request_context)):
    """
    Create or update an item

    Query options: `rename` (new name), `move` (new folder, empty for
    none), `overwrite` (allow replacing an item at the new key).
    """
    if not context.user:
        return responses.unauthorized()

    controller = context.environment.controllers.resolve(model)
    if not controller.accepts_raw_body and context.body is None:
        return responses.bad_request()

    parameters = document_parameters(model, context, value=context.body)
    if parameters is None:
        return responses.bad_request()

    return responses.success(await controller.put(parameters, context))

@router.delete("/{model}")
async def delete_document(model: str, context: RequestContext = Depends(get_request_context)):
    if not context.user:
        return responses.unauthorized()

    controller = context.environment.controllers.resolve(model)
    parameters = document_parameters(model, context)
    if parameters is None:
        return responses.bad_request()

    if not await controller.exists(parameters, context):
        return responses.not_found()
    return responses.success(await controller.delete(parameters, context))
