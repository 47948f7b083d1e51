"""
Folder listing cache
Distinct folder names per model, kept in the `cache` collection
"""

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

class FolderCache:
    """
    Cache of the folder set observed for each model

    Writers invalidate the entry whenever a document insert or move could
    change the set; readers repopulate it from a distinct-folder scan.
    """

    def __init__(self, db):
        self.collection = db.cache

    @staticmethod
    def key(model: str) -> str:
        return f"{model}-folders"

    async def get(self, model: str) -> Optional[List[str]]:
        cached = await self.collection.find_one({"key": self.key(model)})
        if cached is None:
            return None
        return cached["value"]

    async def put(self, model: str, folders: List[str]) -> None:
        await self.collection.update_one(
            {"key": self.key(model)},
            {"$set": {"value": folders}},
            upsert=True
        )

    async def delete(self, model: str) -> None:
        result = await self.collection.delete_one({"key": self.key(model)})
        if result.deleted_count:
            logger.debug(f"Invalidated folder cache for {model}")
