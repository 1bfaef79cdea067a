"""HTTP client for the Google Play Android Publisher v3 edits API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from playrelease.adapters.http_resilience import ResilientClient, build_limiter
from playrelease.domain.model import ExpansionFileUpload, VersionCode
from playrelease.domain.ports.publishing import RemoteCallError

from .schema import (
    Apk,
    AppEdit,
    Bundle,
    DeobfuscationFilesUploadResponse,
    ErrorResponse,
    ExpansionFilesUploadResponse,
    ListingPayload,
    TrackPayload,
)
from .translator import listing_to_payload, track_to_payload, translate_edit, translate_track

if TYPE_CHECKING:
    from pathlib import Path

    from pydantic import BaseModel

    from playrelease.config.google_play import GooglePlayConfig
    from playrelease.domain.model import (
        Edit,
        ExpansionFileType,
        ListingText,
        TrackRelease,
        TrackState,
    )
    from playrelease.domain.ports.credentials import TokenProvider
    from playrelease.domain.ports.publishing import EditsApi

log = getLogger(__name__)

API_PATH = "/androidpublisher/v3/applications"
UPLOAD_PATH = "/upload/androidpublisher/v3/applications"
APK_CONTENT_TYPE = "application/vnd.android.package-archive"
OCTET_STREAM = "application/octet-stream"
DEOBFUSCATION_FILE_TYPE = "proguard"


class GooglePlayAPIError(RemoteCallError):
    """Raised when a Google Play call fails, at the API or at the transport level."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        status: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.status = status


class GooglePlayEditsClient:
    """Issue edit-scoped calls for one package.

    Each public method performs one request to completion. The bearer token is
    fetched from ``credentials`` for every request so long runs survive expiry.
    All requests share one rate limiter even though each runs on its own event
    loop.
    """

    def __init__(
        self,
        *,
        config: GooglePlayConfig,
        credentials: TokenProvider,
    ) -> None:
        self._resilience = config.resilience
        self._credentials = credentials
        self._limiter = build_limiter(config.resilience)

    def open_edit(self, package_name: str) -> Edit:
        payload = self._call(
            "POST",
            f"{API_PATH}/{package_name}/edits",
            AppEdit,
            json={},
        )
        return translate_edit(payload, package_name=package_name)

    def upload_apk(self, edit: Edit, path: Path) -> VersionCode:
        payload = self._call(
            "POST",
            f"{_upload_prefix(edit)}/apks",
            Apk,
            content=path.read_bytes(),
            content_type=APK_CONTENT_TYPE,
            upload=True,
        )
        return VersionCode(payload.version_code)

    def upload_bundle(self, edit: Edit, path: Path) -> VersionCode:
        payload = self._call(
            "POST",
            f"{_upload_prefix(edit)}/bundles",
            Bundle,
            content=path.read_bytes(),
            content_type=OCTET_STREAM,
            upload=True,
        )
        return VersionCode(payload.version_code)

    def upload_expansion_file(
        self,
        edit: Edit,
        *,
        version_code: VersionCode,
        path: Path,
        file_type: ExpansionFileType,
    ) -> ExpansionFileUpload:
        payload = self._call(
            "POST",
            f"{_upload_prefix(edit)}/apks/{version_code}/expansionFiles/{file_type}",
            ExpansionFilesUploadResponse,
            content=path.read_bytes(),
            content_type=OCTET_STREAM,
            upload=True,
        )
        expansion_file = payload.expansion_file
        return ExpansionFileUpload(
            version_code=version_code,
            file_type=file_type,
            file_size=expansion_file.file_size if expansion_file is not None else None,
        )

    def upload_deobfuscation_file(
        self,
        edit: Edit,
        *,
        version_code: VersionCode,
        path: Path,
    ) -> None:
        self._call(
            "POST",
            f"{_upload_prefix(edit)}/apks/{version_code}/deobfuscationFiles/"
            f"{DEOBFUSCATION_FILE_TYPE}",
            DeobfuscationFilesUploadResponse,
            content=path.read_bytes(),
            content_type=OCTET_STREAM,
            upload=True,
        )

    def get_track(self, edit: Edit, track: str) -> TrackState:
        payload = self._call("GET", f"{_edit_prefix(edit)}/tracks/{track}", TrackPayload)
        return translate_track(payload)

    def update_track(self, edit: Edit, track: str, release: TrackRelease) -> TrackState:
        body = track_to_payload(track, release).model_dump(by_alias=True, exclude_none=True)
        log.debug("Track update request for %s: %s", track, body)
        payload = self._call(
            "PUT", f"{_edit_prefix(edit)}/tracks/{track}", TrackPayload, json=body
        )
        return translate_track(payload)

    def update_listing(self, edit: Edit, listing: ListingText) -> None:
        body = listing_to_payload(listing).model_dump(by_alias=True, exclude_none=True)
        self._call(
            "PUT",
            f"{_edit_prefix(edit)}/listings/{listing.language}",
            ListingPayload,
            json=body,
        )

    def commit(self, edit: Edit, *, changes_not_sent_for_review: bool = False) -> Edit:
        params = {"changesNotSentForReview": "true"} if changes_not_sent_for_review else None
        payload = self._call("POST", f"{_edit_prefix(edit)}:commit", AppEdit, params=params)
        return translate_edit(payload, package_name=edit.package_name)

    def _call[ModelT: BaseModel](
        self,
        method: str,
        path: str,
        model: type[ModelT],
        *,
        json: object | None = None,
        params: dict[str, str] | None = None,
        content: bytes | None = None,
        content_type: str | None = None,
        upload: bool = False,
    ) -> ModelT:
        # Refreshing may block on the token endpoint, so it stays outside the loop.
        token = self._credentials.token()
        return asyncio.run(
            self._call_async(
                method,
                path,
                model,
                token=token,
                json=json,
                params=params,
                content=content,
                content_type=content_type,
                upload=upload,
            )
        )

    async def _call_async[ModelT: BaseModel](
        self,
        method: str,
        path: str,
        model: type[ModelT],
        *,
        token: str,
        json: object | None,
        params: dict[str, str] | None,
        content: bytes | None,
        content_type: str | None,
        upload: bool,
    ) -> ModelT:
        headers = {"Authorization": f"Bearer {token}"}
        if content_type is not None:
            headers["Content-Type"] = content_type
        query = dict(params or {})
        if upload:
            query["uploadType"] = "media"

        async with ResilientClient(self._resilience, limiter=self._limiter) as client:
            try:
                response = await client.request(
                    method,
                    path,
                    headers=headers,
                    params=query or None,
                    json=json,
                    content=content,
                )
            except httpx.HTTPError as exc:
                raise GooglePlayAPIError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            raise _api_error(method, path, response)
        log.debug("%s %s -> %s", method, path, response.status_code)

        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise GooglePlayAPIError(
                f"Unexpected Google Play response payload for {method} {path}",
                status_code=response.status_code,
            ) from exc


def _edit_prefix(edit: Edit) -> str:
    return f"{API_PATH}/{edit.package_name}/edits/{edit.edit_id}"


def _upload_prefix(edit: Edit) -> str:
    return f"{UPLOAD_PATH}/{edit.package_name}/edits/{edit.edit_id}"


def _api_error(method: str, path: str, response: httpx.Response) -> GooglePlayAPIError:
    try:
        error = ErrorResponse.model_validate(response.json()).error
    except (ValueError, ValidationError):
        return GooglePlayAPIError(
            f"{method} {path} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )
    log.error(f"Google Play API error {error.code}: {error.message}")
    return GooglePlayAPIError(error.message, status_code=error.code, status=error.status)


if TYPE_CHECKING:
    _api_check: type[EditsApi] = GooglePlayEditsClient
