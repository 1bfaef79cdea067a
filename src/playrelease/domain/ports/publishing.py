"""Port for the remote edits API of the app-distribution platform."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from playrelease.domain.model import (
        Edit,
        ExpansionFileType,
        ExpansionFileUpload,
        ListingText,
        TrackRelease,
        TrackState,
        VersionCode,
    )


class RemoteCallError(RuntimeError):
    """Raised by adapters when a remote call fails for any reason.

    Covers both API-level rejections and transport failures; the domain wraps it
    into the error of the step that issued the call.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class EditsApi(Protocol):
    """Remote calls issued against one edit. Every call runs to completion."""

    def open_edit(self, package_name: str) -> Edit: ...

    def upload_apk(self, edit: Edit, path: Path) -> VersionCode: ...

    def upload_bundle(self, edit: Edit, path: Path) -> VersionCode: ...

    def upload_expansion_file(
        self,
        edit: Edit,
        *,
        version_code: VersionCode,
        path: Path,
        file_type: ExpansionFileType,
    ) -> ExpansionFileUpload: ...

    def upload_deobfuscation_file(
        self,
        edit: Edit,
        *,
        version_code: VersionCode,
        path: Path,
    ) -> None: ...

    def get_track(self, edit: Edit, track: str) -> TrackState: ...

    def update_track(self, edit: Edit, track: str, release: TrackRelease) -> TrackState: ...

    def update_listing(self, edit: Edit, listing: ListingText) -> None: ...

    def commit(self, edit: Edit, *, changes_not_sent_for_review: bool = False) -> Edit: ...
