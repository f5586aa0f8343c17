"""Request pipeline shared by the Dify application clients"""  # noqa: D415

from .configuration import CacheConfig, RateLimitConfig
from .gateway import BinaryPayload, RequestDescriptor, RequestGateway, encode_query
from .rate_limiter import RateLimiter
from .response_cache import CacheMetrics, ResponseCache
from .transport import HttpxTransport, Transport, TransportRequest, TransportResponse

__all__ = [  # noqa: RUF022
    # Configuration
    "CacheConfig",
    "RateLimitConfig",
    # Pipeline
    "RequestDescriptor",
    "RequestGateway",
    "BinaryPayload",
    "encode_query",
    "RateLimiter",
    "ResponseCache",
    "CacheMetrics",
    # Transport seam
    "Transport",
    "TransportRequest",
    "TransportResponse",
    "HttpxTransport",
]
