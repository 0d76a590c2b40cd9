from .client import BASE_URLS, ApiClient, clean_token
from .platform import PlatformApi

__all__ = [
    "ApiClient",
    "BASE_URLS",
    "PlatformApi",
    "clean_token",
]
