"""Edit transaction: open, upload, update the track, commit.

The transaction is a state-tagged handle. Steps only run from the states listed
in ``_ALLOWED``; the first failing step raises and the edit is never committed.
Google Play expires uncommitted edits on its own, so there is no abort call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import (
    ArtifactUploadError,
    CommitError,
    EditOpenError,
    InputError,
    ListingUpdateError,
    TransactionStateError,
)
from .model import DEFAULT_UPDATE_PRIORITY, DEFAULT_USER_FRACTION
from .ports.publishing import RemoteCallError
from .release import NotesMode
from .track_reconciler import update_track
from .uploader import upload_artifact

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from .model import (
        Artifact,
        Edit,
        FilterPolicy,
        ListingText,
        LocalizedText,
        TrackState,
        VersionCode,
    )
    from .ports.metadata import ReleaseMetadataSource
    from .ports.publishing import EditsApi
    from .release import ReleaseRequest

log = getLogger(__name__)


class EditState(StrEnum):
    STARTED = "started"
    EDIT_OPENED = "edit_opened"
    ARTIFACTS_UPLOADED = "artifacts_uploaded"
    TRACK_UPDATED = "track_updated"
    COMMITTED = "committed"


_ALLOWED: dict[str, frozenset[EditState]] = {
    "open": frozenset({EditState.STARTED}),
    "upload_artifacts": frozenset({EditState.EDIT_OPENED}),
    "upload_mapping": frozenset({EditState.ARTIFACTS_UPLOADED}),
    "update_listings": frozenset({EditState.EDIT_OPENED, EditState.ARTIFACTS_UPLOADED}),
    "update_track": frozenset({EditState.EDIT_OPENED, EditState.ARTIFACTS_UPLOADED}),
    "commit": frozenset(
        {EditState.EDIT_OPENED, EditState.ARTIFACTS_UPLOADED, EditState.TRACK_UPDATED}
    ),
}


@dataclass(slots=True)
class EditTransaction:
    """One live edit for one package, owned by a single run."""

    api: EditsApi
    package_name: str
    state: EditState = EditState.STARTED
    _edit: Edit | None = None
    _version_codes: list[VersionCode] = field(default_factory=list["VersionCode"])

    @property
    def edit(self) -> Edit:
        if self._edit is None:
            raise TransactionStateError("No edit has been opened yet")
        return self._edit

    @property
    def version_codes(self) -> tuple[VersionCode, ...]:
        """Version codes produced so far, in upload order."""

        return tuple(self._version_codes)

    def open(self) -> Edit:
        self._require("open")
        log.debug("Creating a new edit for %s", self.package_name)
        try:
            self._edit = self.api.open_edit(self.package_name)
        except RemoteCallError as exc:
            raise EditOpenError(
                f"Cannot create edit: {exc}", context={"package": self.package_name}
            ) from exc
        self.state = EditState.EDIT_OPENED
        log.info("Opened edit %s for %s", self._edit.edit_id, self.package_name)
        return self._edit

    def upload_artifacts(self, artifacts: Iterable[Artifact]) -> tuple[VersionCode, ...]:
        """Upload artifacts one at a time, in the given order."""

        self._require("upload_artifacts")
        for artifact in artifacts:
            self._version_codes.append(upload_artifact(self.api, self.edit, artifact))
        self.state = EditState.ARTIFACTS_UPLOADED
        return self.version_codes

    def upload_mapping(self, path: Path) -> VersionCode | None:
        """Attach a deobfuscation file to the first uploaded version code only."""

        self._require("upload_mapping")
        if not self._version_codes:
            log.debug("No version code was produced, skipping mapping file %s", path)
            return None
        if not path.is_file() or not os.access(path, os.R_OK):
            raise InputError(
                "Mapping file is missing or unreadable",
                context={"package": self.package_name, "path": str(path)},
            )
        version_code = self._version_codes[0]
        log.info("Uploading mapping file %s for version code %s", path, version_code)
        try:
            self.api.upload_deobfuscation_file(self.edit, version_code=version_code, path=path)
        except RemoteCallError as exc:
            raise ArtifactUploadError(
                f"Mapping file upload rejected: {exc}",
                operation="upload_deobfuscation_file",
                context={
                    "package": self.package_name,
                    "path": str(path),
                    "version_code": version_code,
                },
            ) from exc
        return version_code

    def update_listings(self, listings: Iterable[ListingText]) -> int:
        self._require("update_listings")
        updated = 0
        for listing in listings:
            if listing.is_empty():
                continue
            log.debug("Updating store listing for %s", listing.language)
            try:
                self.api.update_listing(self.edit, listing)
            except RemoteCallError as exc:
                raise ListingUpdateError(
                    f"Cannot update store listing: {exc}",
                    context={"package": self.package_name, "language": listing.language},
                ) from exc
            updated += 1
        return updated

    def update_track(
        self,
        *,
        track: str,
        policy: FilterPolicy,
        user_fraction: float = DEFAULT_USER_FRACTION,
        update_priority: int = DEFAULT_UPDATE_PRIORITY,
        release_notes: Sequence[LocalizedText] | None = None,
        release_name: str | None = None,
    ) -> TrackState:
        self._require("update_track")
        updated = update_track(
            self.api,
            self.edit,
            track=track,
            uploaded=self._version_codes,
            policy=policy,
            user_fraction=user_fraction,
            update_priority=update_priority,
            release_notes=release_notes,
            release_name=release_name,
        )
        self.state = EditState.TRACK_UPDATED
        return updated

    def commit(self, *, changes_not_sent_for_review: bool = False) -> Edit:
        self._require("commit")
        log.debug("Committing edit %s", self.edit.edit_id)
        try:
            committed = self.api.commit(
                self.edit, changes_not_sent_for_review=changes_not_sent_for_review
            )
        except RemoteCallError as exc:
            raise CommitError(
                f"Cannot commit edit: {exc}",
                context={"package": self.package_name, "edit_id": self.edit.edit_id},
            ) from exc
        self.state = EditState.COMMITTED
        return committed

    def _require(self, step: str) -> None:
        allowed = _ALLOWED[step]
        if self.state not in allowed:
            raise TransactionStateError(
                f"Cannot {step.replace('_', ' ')} from state {self.state!s}"
            )


@dataclass(slots=True)
class PublishReport:
    """What a committed run changed."""

    package_name: str
    edit_id: str
    track: str
    version_codes: tuple[VersionCode, ...]
    track_state: TrackState | None = None
    listings_updated: int = 0

    @property
    def track_updated(self) -> bool:
        return self.track_state is not None


def publish(
    api: EditsApi,
    request: ReleaseRequest,
    *,
    metadata: ReleaseMetadataSource | None = None,
) -> PublishReport:
    """Run one release as a single edit transaction."""

    request.validate()
    if request.notes_mode is not NotesMode.NONE and metadata is None:
        raise InputError(
            f"Release notes mode {request.notes_mode} requires a metadata source",
            context={"package": request.package_name},
        )

    transaction = EditTransaction(api=api, package_name=request.package_name)
    edit = transaction.open()

    require_track_update = False
    if request.update_only_store_listing:
        log.debug("Store listing update only, skipping APK/bundle upload")
    else:
        log.info(
            "Uploading %d APK(s) and %d bundle(s)", len(request.apks), len(request.bundles)
        )
        transaction.upload_artifacts(request.artifacts)
        require_track_update = True
        if request.mapping_file is not None:
            transaction.upload_mapping(request.mapping_file)

    release_notes: list[LocalizedText] | None = None
    listings_updated = 0
    if request.notes_mode is NotesMode.METADATA and metadata is not None:
        log.info("Attaching metadata from %s", request.metadata_root)
        listings_updated = transaction.update_listings(metadata.listings())
        release_notes = metadata.release_notes(transaction.version_codes) or None
        require_track_update = not request.update_only_store_listing
    elif request.notes_mode is NotesMode.CHANGELOG and metadata is not None:
        log.debug("Applying the common changelog %s to all versions", request.changelog_file)
        release_notes = metadata.release_notes(transaction.version_codes) or None
        require_track_update = True

    track_state: TrackState | None = None
    if require_track_update:
        log.info("Updating track %s", request.track)
        track_state = transaction.update_track(
            track=request.track,
            policy=request.policy,
            user_fraction=request.user_fraction,
            update_priority=request.update_priority,
            release_notes=release_notes,
            release_name=request.release_name,
        )

    transaction.commit(changes_not_sent_for_review=request.changes_not_sent_for_review)
    log.info("Committed edit %s for %s", edit.edit_id, request.package_name)

    return PublishReport(
        package_name=request.package_name,
        edit_id=edit.edit_id,
        track=request.track,
        version_codes=transaction.version_codes,
        track_state=track_state,
        listings_updated=listings_updated,
    )
