"""Health probes."""

from .base import CallableProbe, HealthProbe
from .http import HTTP_CLIENT_RESOURCE, HttpProbe
from .system import DiskSpaceProbe, MemoryProbe

__all__ = [
    "CallableProbe",
    "HealthProbe",
    "HTTP_CLIENT_RESOURCE",
    "HttpProbe",
    "DiskSpaceProbe",
    "MemoryProbe",
]
