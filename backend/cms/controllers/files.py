"""
Files controller
Binary uploads kept in the R2 bucket, keyed by folder/name
"""
import logging
import tempfile
from typing import Any, Dict, List, Optional

from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from cms.context import RequestContext
from cms.controllers.base import Controller, DocumentParameters, ListParameters
from cms.errors import ConflictError, ControllerError
from cms.services.pagination import ListResult
from cms.services.r2_storage import R2Storage

logger = logging.getLogger(__name__)

# Uploads larger than this spill from memory to a temporary file
SPOOL_MAX_SIZE = 5 * 1024 * 1024  # 5MB

def object_key(folder: Optional[str], name: str) -> str:
    return f"{folder}/{name}" if folder else name

def _summary(obj: Dict[str, Any]) -> Dict[str, Any]:
    uploaded_at = obj.get("uploaded_at")
    modified_at = int(uploaded_at.timestamp()) if uploaded_at else None
    pieces = obj["key"].split("/")

    if len(pieces) == 2:
        return {"name": pieces[1], "folder": pieces[0], "modified_at": modified_at, "size": obj.get("size")}
    return {"name": obj["key"], "folder": None, "modified_at": modified_at, "size": obj.get("size")}

class FilesController(Controller):
    """Object-store backed controller for the `files` model"""

    accepts_raw_body = True

    def _storage(self, context: RequestContext) -> R2Storage:
        storage = context.environment.files
        if storage is None:
            raise ControllerError("Object storage is not configured")
        return storage

    async def list(self, parameters: ListParameters, context: RequestContext) -> ListResult:
        """Prefix listing paged by the bucket's own continuation token"""
        prefix = f"{parameters.folder}/" if parameters.folder else ""
        prefix += parameters.prefix or ""

        objects, cursor = await run_in_threadpool(
            self._storage(context).list_objects, prefix, parameters.limit, parameters.after
        )
        return ListResult(results=[_summary(obj) for obj in objects], last=cursor)

    async def list_folders(self, parameters: ListParameters, context: RequestContext) -> List[str]:
        folder_cache = context.environment.folder_cache
        cached = await folder_cache.get(parameters.model)
        if cached is not None:
            return cached

        folders = sorted(await run_in_threadpool(self._storage(context).list_prefixes))
        await folder_cache.put(parameters.model, folders)
        return folders

    async def exists(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        key = object_key(parameters.folder, parameters.name)
        return await run_in_threadpool(self._storage(context).head, key) is not None

    async def get(self, parameters: DocumentParameters, context: RequestContext) -> Optional[StreamingResponse]:
        key = object_key(parameters.folder, parameters.name)
        stored = await run_in_threadpool(self._storage(context).get, key)
        if stored is None:
            return None

        return StreamingResponse(
            stored.body.iter_chunks(),
            media_type=stored.content_type,
            headers={"content-length": str(stored.size)}
        )

    async def put(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        """
        Stream the request body into the bucket

        A rename or move with an empty body copies the stored object to its
        new key; with a body the new content is uploaded there. Either way
        the old key is removed afterwards.
        """
        storage = self._storage(context)
        source = object_key(parameters.folder, parameters.name)
        destination = object_key(parameters.target_folder, parameters.target_name)

        if parameters.relocates:
            occupied = await run_in_threadpool(storage.head, destination)
            if occupied is not None:
                if not parameters.overwrite:
                    raise ConflictError(f"File {destination} already exists")
                logger.info(f"Overwriting file {destination}")

        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE) as spool:
            size = 0
            async for chunk in context.request.stream():
                spool.write(chunk)
                size += len(chunk)
            spool.seek(0)

            if parameters.relocates and size == 0:
                if await run_in_threadpool(storage.head, source) is None:
                    raise ControllerError(f"Cannot move nonexistent file {source}.")
                await run_in_threadpool(storage.copy, source, destination)
            else:
                await run_in_threadpool(
                    storage.put,
                    destination,
                    spool,
                    context.headers.get("content-type"),
                    parameters.modified_by
                )

        if parameters.relocates:
            await run_in_threadpool(storage.delete, source)

        if parameters.target_folder or parameters.move is not None:
            await context.environment.folder_cache.delete(parameters.model)

        logger.info(f"Stored file {destination} ({size} bytes) for {parameters.modified_by}")
        return True

    async def delete(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        key = object_key(parameters.folder, parameters.name)
        deleted = await run_in_threadpool(self._storage(context).delete, key)
        if parameters.folder:
            await context.environment.folder_cache.delete(parameters.model)
        return deleted
