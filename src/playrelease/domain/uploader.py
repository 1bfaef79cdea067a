"""Upload one artifact and its optional expansion file."""

from __future__ import annotations

import os
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import ArtifactUploadError, InputError
from .model import EXPANSION_FILE_EXTENSION, ArtifactKind, ExpansionFileType
from .ports.publishing import RemoteCallError

if TYPE_CHECKING:
    from pathlib import Path

    from .model import Artifact, Edit, VersionCode
    from .ports.publishing import EditsApi

log = getLogger(__name__)


def upload_artifact(api: EditsApi, edit: Edit, artifact: Artifact) -> VersionCode:
    """Upload ``artifact`` into ``edit`` and return its server-assigned version code."""

    context = {
        "package": edit.package_name,
        "path": str(artifact.path),
        "kind": artifact.kind,
    }
    if not artifact.path.is_file() or not os.access(artifact.path, os.R_OK):
        raise InputError("Artifact file is missing or unreadable", context=context)

    log.debug("Uploading %s %s", artifact.kind, artifact.path)
    try:
        if artifact.kind is ArtifactKind.APK:
            version_code = api.upload_apk(edit, artifact.path)
        else:
            version_code = api.upload_bundle(edit, artifact.path)
    except RemoteCallError as exc:
        raise ArtifactUploadError(f"Upload rejected: {exc}", context=context) from exc
    log.info("Uploaded %s with version code %s", artifact.name, version_code)

    if artifact.kind is ArtifactKind.APK and artifact.attach_expansion_file:
        expansion_file = find_expansion_file(
            artifact.path,
            package_name=edit.package_name,
            version_code=version_code,
        )
        if expansion_file is not None:
            _upload_expansion_file(api, edit, version_code=version_code, path=expansion_file)

    return version_code


def find_expansion_file(
    artifact_path: Path,
    *,
    package_name: str,
    version_code: VersionCode,
) -> Path | None:
    """Locate the expansion file for an APK.

    Any ``.obb`` file in the parent's parent directory wins, whatever its name.
    Otherwise the APK's own directory must contain
    ``main.<versionCode>.<packageName>.obb``.
    """

    current_directory = artifact_path.parent
    parent_directory = current_directory.parent

    for candidate in _sorted_files(parent_directory):
        if candidate.suffix == EXPANSION_FILE_EXTENSION:
            log.debug("Found expansion file in parent directory: %s", candidate)
            return candidate

    expected_name = (
        f"{ExpansionFileType.MAIN}.{version_code}.{package_name}{EXPANSION_FILE_EXTENSION}"
    )
    candidate = current_directory / expected_name
    if candidate.is_file():
        log.debug("Found expansion file next to the APK: %s", candidate)
        return candidate

    log.debug("No expansion file found for %s, skipping upload", artifact_path)
    return None


def _sorted_files(directory: Path) -> list[Path]:
    # Lexicographic order keeps the pick stable across filesystems.
    if not directory.is_dir():
        return []
    return sorted(path for path in directory.iterdir() if path.is_file())


def _upload_expansion_file(
    api: EditsApi,
    edit: Edit,
    *,
    version_code: VersionCode,
    path: Path,
) -> None:
    try:
        result = api.upload_expansion_file(
            edit,
            version_code=version_code,
            path=path,
            file_type=ExpansionFileType.MAIN,
        )
    except RemoteCallError as exc:
        raise ArtifactUploadError(
            f"Expansion file upload rejected: {exc}",
            operation="upload_expansion_file",
            context={
                "package": edit.package_name,
                "path": str(path),
                "version_code": version_code,
            },
        ) from exc

    if not result.file_size:
        log.warning(
            "Expansion file %s for version code %s was reported with zero size",
            path.name,
            version_code,
        )
    else:
        log.info(
            "Uploaded expansion file with version code %s and size %s",
            version_code,
            result.file_size,
        )
