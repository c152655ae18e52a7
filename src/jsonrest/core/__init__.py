"""Client and request execution."""

from .client import Client
from .executor import RequestExecutor, ResponseCallback, normalize

__all__ = ["Client", "RequestExecutor", "ResponseCallback", "normalize"]
