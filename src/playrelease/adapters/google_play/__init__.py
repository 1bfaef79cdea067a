"""Google Play Android Publisher adapter."""

from __future__ import annotations

from .auth import ServiceAccountTokenProvider, load_service_account_credentials
from .client import GooglePlayAPIError, GooglePlayEditsClient
from .schema import AppEdit, Apk, Bundle, ErrorResponse, TrackPayload, TrackReleasePayload
from .translator import track_to_payload, translate_edit, translate_track

__all__ = [
    "Apk",
    "AppEdit",
    "Bundle",
    "ErrorResponse",
    "GooglePlayAPIError",
    "GooglePlayEditsClient",
    "ServiceAccountTokenProvider",
    "TrackPayload",
    "TrackReleasePayload",
    "load_service_account_credentials",
    "track_to_payload",
    "translate_edit",
    "translate_track",
]
