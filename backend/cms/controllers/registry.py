"""
Controller registry
Model name -> controller, fixed at startup
"""
import logging
from types import MappingProxyType
from typing import Mapping, Optional

import httpx

from cms.config import Settings
from cms.controllers.base import Controller
from cms.controllers.documents import DocumentsController
from cms.controllers.files import FilesController
from cms.controllers.products import ProductsController
from cms.controllers.users import UsersController
from cms.errors import OperationNotSupported
from cms.services.bigcommerce import BigCommerceStore

logger = logging.getLogger(__name__)

# Paths owned by the session routes, never model names
RESERVED_MODELS = frozenset({"session", "verification"})

class ControllerRegistry:
    """
    Immutable model -> controller map

    Models without an entry fall back to the default controller.
    """

    def __init__(self, controllers: Mapping[str, Controller], default: Controller):
        self._controllers = MappingProxyType(dict(controllers))
        self.default = default

    def resolve(self, model: str) -> Controller:
        if not model or model in RESERVED_MODELS:
            raise OperationNotSupported(f"No model named {model!r}")
        return self._controllers.get(model, self.default)

    def __contains__(self, model: str) -> bool:
        return model in self._controllers

    @property
    def models(self):
        return tuple(self._controllers)

def build_registry(
    settings: Settings,
    bigcommerce_transport: Optional[httpx.AsyncBaseTransport] = None
) -> ControllerRegistry:
    """Registry for the configured deployment"""
    controllers = {
        "files": FilesController(),
        "users": UsersController(),
    }

    if settings.bigcommerce_enabled:
        store = BigCommerceStore(
            settings.BIGCOMMERCE_STORE_HASH,
            settings.BIGCOMMERCE_TOKEN,
            transport=bigcommerce_transport
        )
        controllers[settings.BIGCOMMERCE_MODEL] = ProductsController(store)
        logger.info(f"🛒 Model '{settings.BIGCOMMERCE_MODEL}' served by BigCommerce")

    return ControllerRegistry(controllers, default=DocumentsController())
