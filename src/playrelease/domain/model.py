"""Domain model for Google Play releases (pure, dependency-light)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, NewType

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

VersionCode = NewType("VersionCode", int)

EXPANSION_FILE_EXTENSION = ".obb"
DEFAULT_LANGUAGE_CODE = "en-US"
DEFAULT_USER_FRACTION = 1.0
DEFAULT_UPDATE_PRIORITY = 0
MIN_UPDATE_PRIORITY = 0
MAX_UPDATE_PRIORITY = 5


class ArtifactKind(StrEnum):
    APK = "apk"
    BUNDLE = "bundle"


class ExpansionFileType(StrEnum):
    MAIN = "main"


class ReleaseStatus(StrEnum):
    """Status values of a track release as reported by Google Play."""

    COMPLETED = "completed"
    IN_PROGRESS = "inProgress"
    HALTED = "halted"
    DRAFT = "draft"


@dataclass(frozen=True, slots=True)
class Artifact:
    """A binary release unit resolved to a local file.

    ``attach_expansion_file`` only has an effect for APKs.
    """

    path: Path
    kind: ArtifactKind
    is_primary: bool = False
    attach_expansion_file: bool = False

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class Edit:
    """Server-side transactional session for one package."""

    edit_id: str
    package_name: str
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class LocalizedText:
    language: str
    text: str


@dataclass(frozen=True, slots=True)
class ListingText:
    """Store listing text for one locale. ``None`` fields are left untouched."""

    language: str
    title: str | None = None
    short_description: str | None = None
    full_description: str | None = None
    video: str | None = None

    def is_empty(self) -> bool:
        return not any((self.title, self.short_description, self.full_description, self.video))


@dataclass(frozen=True, slots=True)
class TrackRelease:
    version_codes: tuple[VersionCode, ...] = ()
    status: ReleaseStatus | None = None
    user_fraction: float | None = None
    update_priority: int | None = None
    release_notes: tuple[LocalizedText, ...] = ()
    name: str | None = None


@dataclass(frozen=True, slots=True)
class TrackState:
    track: str
    releases: tuple[TrackRelease, ...] = field(default_factory=tuple)

    @property
    def active_version_codes(self) -> tuple[VersionCode, ...]:
        """Version codes of the first release, which Google Play reports as current."""

        if not self.releases:
            return ()
        return self.releases[0].version_codes


@dataclass(frozen=True, slots=True)
class ExpansionFileUpload:
    version_code: VersionCode
    file_type: ExpansionFileType
    file_size: int | None = None


# Filter policies ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AllVersionCodes:
    """Replace the whole active set of the track with the uploaded codes."""


@dataclass(frozen=True, slots=True)
class ExcludeVersionCodes:
    """Keep active codes except the listed ones, then add the uploaded codes."""

    codes: frozenset[VersionCode]


@dataclass(frozen=True, slots=True)
class ExcludeMatchingVersionCodes:
    """Keep active codes whose decimal form does not fully match ``pattern``."""

    pattern: str


type FilterPolicy = AllVersionCodes | ExcludeVersionCodes | ExcludeMatchingVersionCodes
