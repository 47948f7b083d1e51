"""
Controller interface
Per-model storage strategy used by the model routes
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

from fastapi.responses import Response

from cms.context import RequestContext
from cms.errors import OperationNotSupported
from cms.services.pagination import ListResult

@dataclass(frozen=True)
class ListParameters:
    model: str
    folder: Optional[str] = None
    prefix: Optional[str] = None
    limit: int = 20
    after: Optional[str] = None

@dataclass(frozen=True)
class DocumentParameters:
    """
    Address of one item plus write options

    `move` is None when the item stays in its folder; an empty string
    moves it out of any folder.
    """
    model: str
    name: str
    folder: Optional[str] = None
    value: Any = None
    modified_by: Optional[str] = None
    rename: Optional[str] = None
    move: Optional[str] = None
    overwrite: bool = False

    @property
    def target_folder(self) -> Optional[str]:
        if self.move is None:
            return self.folder
        return self.move or None

    @property
    def target_name(self) -> str:
        return self.rename or self.name

    @property
    def relocates(self) -> bool:
        return (self.target_folder, self.target_name) != (self.folder, self.name)

class Controller(ABC):
    """
    Storage strategy bound to one or more models

    `get` may return a plain dict (sent as JSON) or a ready Response, for
    controllers serving binary content.
    """

    # PUT bodies are passed through as a raw stream instead of decoded JSON
    accepts_raw_body = False

    @abstractmethod
    async def list(self, parameters: ListParameters, context: RequestContext) -> ListResult:
        ...

    async def list_folders(self, parameters: ListParameters, context: RequestContext) -> List[str]:
        raise OperationNotSupported(f"{parameters.model} has no folders")

    @abstractmethod
    async def exists(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        ...

    @abstractmethod
    async def get(self, parameters: DocumentParameters, context: RequestContext) -> Optional[Any]:
        ...

    @abstractmethod
    async def put(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        ...

    @abstractmethod
    async def delete(self, parameters: DocumentParameters, context: RequestContext) -> bool:
        ...

def is_response(result: Any) -> bool:
    return isinstance(result, Response)
