"""
MediaWiki Package

Session-aware action API client, request builders and typed response models.
"""

from .api_client import (
    ApiError,
    AuthError,
    MediaWikiClient,
    MediaWikiClientError,
    MediaWikiRequestError,
    MediaWikiResponseError,
)
from .session import Credentials, SessionState

__all__ = [
    "ApiError",
    "AuthError",
    "MediaWikiClient",
    "MediaWikiClientError",
    "MediaWikiRequestError",
    "MediaWikiResponseError",
    "Credentials",
    "SessionState",
]
