"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from playrelease.adapters.google_play import GooglePlayEditsClient, ServiceAccountTokenProvider
from playrelease.adapters.metadata import ChangelogFile, MetadataDirectory
from playrelease.config import ConfigurationError, get_google_play_config
from playrelease.domain.edit_transaction import publish
from playrelease.domain.errors import AuthError, ReleaseError
from playrelease.domain.release import NotesMode

if TYPE_CHECKING:
    from playrelease.config.google_play import GooglePlayConfig
    from playrelease.domain.edit_transaction import PublishReport
    from playrelease.domain.model import VersionCode
    from playrelease.domain.ports.credentials import TokenProvider
    from playrelease.domain.ports.metadata import ReleaseMetadataSource
    from playrelease.domain.ports.publishing import EditsApi
    from playrelease.domain.release import ReleaseRequest

type EditsApiFactory = Callable[[GooglePlayConfig, TokenProvider], EditsApi]

log = getLogger(__name__)


@dataclass(slots=True)
class ReleaseOutcome:
    """Overall result of one run, suitable for reporting to a CI system."""

    succeeded: bool
    summary: str
    track: str
    version_codes: tuple[VersionCode, ...] = ()
    report: PublishReport | None = None
    error: ReleaseError | None = None


def _default_api_factory(config: GooglePlayConfig, credentials: TokenProvider) -> EditsApi:
    return GooglePlayEditsClient(config=config, credentials=credentials)


def build_metadata_source(request: ReleaseRequest) -> ReleaseMetadataSource | None:
    """Pick the release-notes source selected by ``request``; the directory wins."""

    if request.notes_mode is NotesMode.METADATA and request.metadata_root is not None:
        return MetadataDirectory(root=request.metadata_root)
    if request.notes_mode is NotesMode.CHANGELOG and request.changelog_file is not None:
        return ChangelogFile(path=request.changelog_file, language=request.language_code)
    return None


def run_release(
    request: ReleaseRequest,
    *,
    config: GooglePlayConfig | None = None,
    credentials: TokenProvider | None = None,
    api_factory: EditsApiFactory | None = None,
    metadata: ReleaseMetadataSource | None = None,
) -> ReleaseOutcome:
    """Publish ``request`` in one edit and report success or the first failure."""

    log.info(
        "Starting release: package=%s, track=%s, apks=%d, bundles=%d, listing_only=%s",
        request.package_name,
        request.track,
        len(request.apks),
        len(request.bundles),
        request.update_only_store_listing,
    )
    try:
        request.validate()
        effective_config, effective_credentials = _authorise(config, credentials)
        api = (api_factory or _default_api_factory)(effective_config, effective_credentials)
        report = publish(
            api,
            request,
            metadata=metadata or build_metadata_source(request),
        )
    except ReleaseError as exc:
        log.error("Release failed: %s", exc)  # noqa: TRY400
        return ReleaseOutcome(
            succeeded=False,
            summary=f"Release to {request.track} failed: {exc}",
            track=request.track,
            error=exc,
        )

    summary = _success_summary(request, report)
    log.info(summary)
    return ReleaseOutcome(
        succeeded=True,
        summary=summary,
        track=request.track,
        version_codes=report.version_codes,
        report=report,
    )


def _authorise(
    config: GooglePlayConfig | None,
    credentials: TokenProvider | None,
) -> tuple[GooglePlayConfig, TokenProvider]:
    try:
        effective_config = config or get_google_play_config()
    except ConfigurationError as exc:
        raise AuthError(f"Cannot resolve credentials: {exc}") from exc
    effective_credentials = credentials or ServiceAccountTokenProvider(
        effective_config.service_account,
        scopes=effective_config.scopes,
    )
    # Authorise before any edit exists so credential problems fail fast.
    effective_credentials.token()
    return effective_config, effective_credentials


def _success_summary(request: ReleaseRequest, report: PublishReport) -> str:
    if report.track_state is None:
        return (
            f"Published {request.package_name} (edit {report.edit_id}); "
            f"track {request.track} left unchanged"
        )
    release = report.track_state.releases[0] if report.track_state.releases else None
    codes = list(release.version_codes) if release else list(report.version_codes)
    status = release.status if release is not None and release.status else "completed"
    rollout = (
        f"{status} at {release.user_fraction:.0%}"
        if release is not None and release.user_fraction is not None
        else str(status)
    )
    return (
        f"Published {request.package_name} to track {request.track} "
        f"with version codes {codes} ({rollout})"
    )
