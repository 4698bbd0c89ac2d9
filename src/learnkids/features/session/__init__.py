from .registry import Bound, PromotionResult, Session, SessionRegistry, Temporary
from .transport import CORS_HEADERS, SseTransport, create_transport_router

__all__ = [
    "CORS_HEADERS",
    "Bound",
    "PromotionResult",
    "Session",
    "SessionRegistry",
    "SseTransport",
    "Temporary",
    "create_transport_router",
]
