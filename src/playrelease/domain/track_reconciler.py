"""Fetch, reconcile and update the active version codes of a track."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import InputError, TrackFetchError, TrackUpdateError
from .model import (
    DEFAULT_UPDATE_PRIORITY,
    DEFAULT_USER_FRACTION,
    MAX_UPDATE_PRIORITY,
    MIN_UPDATE_PRIORITY,
    ReleaseStatus,
    TrackRelease,
)
from .ports.publishing import RemoteCallError
from .version_filter import reconcile, requires_current_track

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model import Edit, FilterPolicy, LocalizedText, TrackState, VersionCode
    from .ports.publishing import EditsApi

log = getLogger(__name__)


def update_track(
    api: EditsApi,
    edit: Edit,
    *,
    track: str,
    uploaded: Sequence[VersionCode],
    policy: FilterPolicy,
    user_fraction: float = DEFAULT_USER_FRACTION,
    update_priority: int = DEFAULT_UPDATE_PRIORITY,
    release_notes: Sequence[LocalizedText] | None = None,
    release_name: str | None = None,
) -> TrackState:
    """Point ``track`` at the reconciled version codes and return the updated track."""

    context = {"package": edit.package_name, "track": track}
    validate_rollout(user_fraction=user_fraction, update_priority=update_priority)

    current_active: Sequence[VersionCode] = ()
    if requires_current_track(policy):
        try:
            current = api.get_track(edit, track)
        except RemoteCallError as exc:
            raise TrackFetchError(
                f"Cannot download track information: {exc}", context=context
            ) from exc
        current_active = current.active_version_codes
        log.debug("Current version codes on %s: %s", track, list(current_active))

    version_codes = reconcile(current_active, uploaded, policy)
    log.info("New %s track version codes: %s", track, version_codes)

    release = build_release(
        version_codes,
        user_fraction=user_fraction,
        update_priority=update_priority,
        release_notes=release_notes,
        release_name=release_name,
    )
    try:
        return api.update_track(edit, track, release)
    except RemoteCallError as exc:
        raise TrackUpdateError(
            f"Cannot update track: {exc}",
            context={**context, "version_codes": version_codes},
        ) from exc


def build_release(
    version_codes: Sequence[VersionCode],
    *,
    user_fraction: float,
    update_priority: int,
    release_notes: Sequence[LocalizedText] | None,
    release_name: str | None,
) -> TrackRelease:
    """Describe the single release the track will carry after the update.

    A full rollout is ``completed`` and carries no fraction; anything less is a
    staged ``inProgress`` rollout.
    """

    staged = user_fraction < DEFAULT_USER_FRACTION
    return TrackRelease(
        version_codes=tuple(version_codes),
        status=ReleaseStatus.IN_PROGRESS if staged else ReleaseStatus.COMPLETED,
        user_fraction=user_fraction if staged else None,
        update_priority=update_priority,
        release_notes=tuple(release_notes or ()),
        name=release_name,
    )


def validate_rollout(*, user_fraction: float, update_priority: int) -> None:
    if not 0.0 <= user_fraction <= 1.0:
        raise InputError(
            "Rollout fraction must be between 0.0 and 1.0",
            context={"user_fraction": user_fraction},
        )
    if not MIN_UPDATE_PRIORITY <= update_priority <= MAX_UPDATE_PRIORITY:
        raise InputError(
            f"Update priority must be between {MIN_UPDATE_PRIORITY} and {MAX_UPDATE_PRIORITY}",
            context={"update_priority": update_priority},
        )
