"""Domain port definitions for adapters."""

from __future__ import annotations

from .credentials import TokenProvider
from .metadata import ReleaseMetadataSource
from .publishing import EditsApi, RemoteCallError

__all__ = [
    "EditsApi",
    "ReleaseMetadataSource",
    "RemoteCallError",
    "TokenProvider",
]
