"""Translate between Android Publisher payloads and domain objects."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from playrelease.domain.model import (
    Edit,
    LocalizedText,
    ReleaseStatus,
    TrackRelease,
    TrackState,
    VersionCode,
)

from .schema import ListingPayload, LocalizedTextPayload, TrackPayload, TrackReleasePayload

if TYPE_CHECKING:
    from playrelease.domain.model import ListingText

    from .schema import AppEdit


def translate_edit(payload: AppEdit, *, package_name: str) -> Edit:
    expires_at = (
        datetime.fromtimestamp(payload.expiry_time_seconds, tz=UTC)
        if payload.expiry_time_seconds is not None
        else None
    )
    return Edit(edit_id=payload.id, package_name=package_name, expires_at=expires_at)


def translate_track(payload: TrackPayload) -> TrackState:
    return TrackState(
        track=payload.track,
        releases=tuple(_translate_release(release) for release in payload.releases),
    )


def _translate_release(payload: TrackReleasePayload) -> TrackRelease:
    return TrackRelease(
        version_codes=tuple(VersionCode(code) for code in payload.version_codes),
        status=_parse_status(payload.status),
        user_fraction=payload.user_fraction,
        update_priority=payload.in_app_update_priority,
        release_notes=tuple(
            LocalizedText(language=note.language, text=note.text) for note in payload.release_notes
        ),
        name=payload.name,
    )


def _parse_status(value: str | None) -> ReleaseStatus | None:
    if value is None:
        return None
    try:
        return ReleaseStatus(value)
    except ValueError:
        # statusUnspecified and any status added later
        return None


def track_to_payload(track: str, release: TrackRelease) -> TrackPayload:
    return TrackPayload(
        track=track,
        releases=[
            TrackReleasePayload(
                name=release.name,
                version_codes=list(release.version_codes),
                status=str(release.status) if release.status is not None else None,
                user_fraction=release.user_fraction,
                in_app_update_priority=release.update_priority,
                release_notes=[
                    LocalizedTextPayload(language=note.language, text=note.text)
                    for note in release.release_notes
                ],
            )
        ],
    )


def listing_to_payload(listing: ListingText) -> ListingPayload:
    return ListingPayload(
        language=listing.language,
        title=listing.title,
        short_description=listing.short_description,
        full_description=listing.full_description,
        video=listing.video,
    )
