"""
Documents controller
Default storage for every model: named JSON values in MongoDB
"""
import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING

from cms.context import RequestContext
from cms.controllers.base import Controller, DocumentParameters, ListParameters
from cms.errors import ConflictError, ControllerError
from cms.services.auth_service import now
from cms.services.pagination import (
    ListResult,
    decode_keyset_cursor,
    keyset_filter,
    last_cursor,
    prefix_filter
)

logger = logging.getLogger(__name__)

# Type of each sort key as stored
SORT_TYPES = {"name": str, "modified_at": int}

LIST_PROJECTION = {"name": 1, "folder": 1, "modified_at": 1, "modified_by": 1}

def _key(model: str, folder: Optional[str], name: str) -> Dict[str, Any]:
    return {"model": model, "folder": folder or None, "name": name}

def _summary(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "name": doc["name"],
        "folder": doc.get("folder"),
        "modified_at": doc.get("modified_at"),
        "modified_by": doc.get("modified_by")
    }

class DocumentsController(Controller):
    """Documents keyed by (model, folder, name)"""

    async def list(self, parameters: ListParameters, context: RequestContext) -> ListResult:
        """
        One page of a model's documents

        Prefix searches order by name so interactive search scans
        alphabetically; plain listings order by modification time.
        """
        query: Dict[str, Any] = {"model": parameters.model}
        if parameters.folder:
            query["folder"] = parameters.folder

        if parameters.prefix:
            query["name"] = prefix_filter(parameters.prefix)
            sort_field = "name"
        else:
            sort_field = "modified_at"

        if parameters.after:
            value, object_id = decode_keyset_cursor(parameters.after, SORT_TYPES[sort_field])
            query.update(keyset_filter(sort_field, value, object_id))

        cursor = context.db.documents.find(query, LIST_PROJECTION).sort(
            [(sort_field, ASCENDING), ("_id", ASCENDING)]
        ).limit(parameters.limit)
        rows = await cursor.to_list(length=parameters.limit)

        return ListResult(
            results=[_summary(row) for row in rows],
            last=last_cursor(rows, parameters.limit, sort_field, "_id")
        )

    async def list_folders(self, parameters: ListParameters, context: RequestContext) -> List[str]:
        folder_cache = context.environment.folder_cache
        cached = await folder_cache.get(parameters.model)
        if cached is not None:
            return cached

        folders = await context.db.documents.distinct("folder", {"model": parameters.model})
        folders = sorted(folder for folder in folders if folder)
        await folder_cache.put(parameters.model, folders)
        return folders

    async def exists(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        found = await context.db.documents.find_one(
            _key(parameters.model, parameters.folder, parameters.name), {"_id": 1}
        )
        return found is not None

    async def get(self, parameters: DocumentParameters, context: RequestContext) -> Optional[Dict[str, Any]]:
        doc = await context.db.documents.find_one(_key(parameters.model, parameters.folder, parameters.name))
        if not doc:
            return None

        return {
            "model": doc["model"],
            "folder": doc.get("folder"),
            "name": doc["name"],
            "value": doc.get("value"),
            "created_at": doc.get("created_at"),
            "modified_at": doc.get("modified_at"),
            "modified_by": doc.get("modified_by")
        }

    async def put(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        """
        Upsert, rename and move as one logical write

        A rename or move is a single-document update of the existing row's
        key, so the document is never missing in between. Landing on an
        occupied key raises ConflictError unless `overwrite` is set, in
        which case the occupant is deleted first.
        """
        documents = context.db.documents
        model = parameters.model
        existing = await documents.find_one(_key(model, parameters.folder, parameters.name), {"_id": 1})

        if parameters.rename and not existing:
            raise ControllerError("Cannot rename nonexistent document.")

        target = _key(model, parameters.target_folder, parameters.target_name)
        if parameters.relocates or not existing:
            await self._claim(documents, target, parameters.overwrite, keep=existing)

        current = now()
        if parameters.move is not None or (not existing and target["folder"]):
            await context.environment.folder_cache.delete(model)

        if existing:
            result = await documents.update_one(
                {"_id": existing["_id"]},
                {"$set": {
                    "folder": target["folder"],
                    "name": target["name"],
                    "value": parameters.value,
                    "modified_at": current,
                    "modified_by": parameters.modified_by
                }}
            )
            logger.info(f"Updated document {model}/{target['folder'] or ''}/{target['name']}")
            return result.matched_count == 1

        result = await documents.insert_one({
            **target,
            "value": parameters.value,
            "created_at": current,
            "modified_at": current,
            "modified_by": parameters.modified_by
        })
        logger.info(f"Inserted document {model}/{target['folder'] or ''}/{target['name']}")
        return result.inserted_id is not None

    async def _claim(self, documents, target: Dict[str, Any], overwrite: bool, keep=None) -> None:
        occupant = await documents.find_one(target, {"_id": 1})
        if not occupant or (keep and occupant["_id"] == keep["_id"]):
            return
        if not overwrite:
            raise ConflictError(f"Document {target['name']} already exists")
        await documents.delete_one({"_id": occupant["_id"]})

    async def delete(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        result = await context.db.documents.delete_one(
            _key(parameters.model, parameters.folder, parameters.name)
        )
        if parameters.folder:
            await context.environment.folder_cache.delete(parameters.model)
        return result.deleted_count == 1
