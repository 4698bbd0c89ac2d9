from .dispatcher import PROTOCOL_VERSION, ProtocolHandler
from .errors import ProtocolError, SessionError, jsonrpc_error, jsonrpc_result
from .tools import CATALOG_URI, CatalogResources, LearningTools

__all__ = [
    "CATALOG_URI",
    "PROTOCOL_VERSION",
    "CatalogResources",
    "LearningTools",
    "ProtocolError",
    "ProtocolHandler",
    "SessionError",
    "jsonrpc_error",
    "jsonrpc_result",
]
