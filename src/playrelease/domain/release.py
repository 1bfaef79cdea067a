"""Release request: everything a run needs, resolved and validated up front."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from .errors import InputError
from .model import (
    DEFAULT_LANGUAGE_CODE,
    DEFAULT_UPDATE_PRIORITY,
    DEFAULT_USER_FRACTION,
    AllVersionCodes,
    Artifact,
    ArtifactKind,
)
from .track_reconciler import validate_rollout

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from .model import FilterPolicy


class NotesMode(StrEnum):
    """Where release notes come from. The two sources are mutually exclusive."""

    NONE = "none"
    METADATA = "metadata"
    CHANGELOG = "changelog"


@dataclass(frozen=True, slots=True, kw_only=True)
class ReleaseRequest:
    package_name: str
    track: str
    apks: tuple[Artifact, ...] = ()
    bundles: tuple[Artifact, ...] = ()
    update_only_store_listing: bool = False
    mapping_file: Path | None = None
    notes_mode: NotesMode = NotesMode.NONE
    metadata_root: Path | None = None
    changelog_file: Path | None = None
    language_code: str = DEFAULT_LANGUAGE_CODE
    policy: FilterPolicy = field(default_factory=AllVersionCodes)
    user_fraction: float = DEFAULT_USER_FRACTION
    update_priority: int = DEFAULT_UPDATE_PRIORITY
    release_name: str | None = None
    changes_not_sent_for_review: bool = False

    @property
    def artifacts(self) -> tuple[Artifact, ...]:
        """Artifacts in upload order: APKs first, then bundles."""

        return self.apks + self.bundles

    def validate(self) -> None:
        if not self.package_name.strip():
            raise InputError("Application identifier is required")
        if not self.track.strip():
            raise InputError("Track name is required", context={"package": self.package_name})
        if not self.update_only_store_listing and not self.artifacts:
            raise InputError(
                "No APK or bundle to upload; use a store-listing-only run instead",
                context={"package": self.package_name},
            )
        if self.notes_mode is NotesMode.METADATA:
            if self.metadata_root is None:
                raise InputError("Metadata mode requires a metadata root directory")
            if not self.metadata_root.is_dir():
                raise InputError(
                    "Metadata root is not a directory",
                    context={"package": self.package_name, "path": str(self.metadata_root)},
                )
        if self.notes_mode is NotesMode.CHANGELOG and self.changelog_file is None:
            raise InputError("Changelog mode requires a changelog file")
        validate_rollout(user_fraction=self.user_fraction, update_priority=self.update_priority)


def build_artifacts(
    kind: ArtifactKind,
    *,
    primary: Path | None,
    additional: Sequence[Path] = (),
    expansion_for_primary: bool = False,
    expansion_for_additional: bool = False,
) -> tuple[Artifact, ...]:
    """Assemble the artifacts of one kind, primary first, without duplicates."""

    if kind is ArtifactKind.BUNDLE and (expansion_for_primary or expansion_for_additional):
        raise InputError("Expansion files can only be attached to APKs")
    if expansion_for_primary and primary is None:
        raise InputError("A primary APK is required to attach its expansion file")
    if expansion_for_additional and not additional:
        raise InputError("Additional APKs are required to attach their expansion files")

    artifacts: list[Artifact] = []
    seen: set[Path] = set()
    if primary is not None:
        artifacts.append(
            Artifact(
                path=primary,
                kind=kind,
                is_primary=True,
                attach_expansion_file=expansion_for_primary,
            )
        )
        seen.add(primary)
    for path in additional:
        if path in seen:
            continue
        seen.add(path)
        artifacts.append(
            Artifact(path=path, kind=kind, attach_expansion_file=expansion_for_additional)
        )
    return tuple(artifacts)
