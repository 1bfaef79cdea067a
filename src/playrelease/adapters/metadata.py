"""Read release notes and store listing text from local files.

Metadata tree layout, one directory per locale::

    <root>/<locale>/title.txt
    <root>/<locale>/short_description.txt
    <root>/<locale>/full_description.txt
    <root>/<locale>/video.txt
    <root>/<locale>/changelogs/<versionCode>.txt
    <root>/<locale>/changelogs/default.txt

Files may also be named without the ``.txt`` suffix.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from playrelease.domain.errors import InputError
from playrelease.domain.model import DEFAULT_LANGUAGE_CODE, ListingText, LocalizedText

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from playrelease.domain.model import VersionCode

log = getLogger(__name__)

CHANGELOG_DIR = "changelogs"
DEFAULT_CHANGELOG = "default"


@dataclass(frozen=True, slots=True)
class MetadataDirectory:
    """Per-locale metadata tree; richer than a single changelog file."""

    root: Path

    def locales(self) -> list[Path]:
        if not self.root.is_dir():
            raise InputError("Metadata root is not a directory", context={"path": str(self.root)})
        return sorted(path for path in self.root.iterdir() if path.is_dir())

    def release_notes(self, version_codes: Sequence[VersionCode]) -> list[LocalizedText]:
        notes: list[LocalizedText] = []
        for locale_dir in self.locales():
            text = self._changelog_for(locale_dir, version_codes)
            if text:
                notes.append(LocalizedText(language=locale_dir.name, text=text))
        log.debug("Read release notes for %d locale(s)", len(notes))
        return notes

    def listings(self) -> list[ListingText]:
        return [
            ListingText(
                language=locale_dir.name,
                title=_read_optional(locale_dir, "title"),
                short_description=_read_optional(locale_dir, "short_description"),
                full_description=_read_optional(locale_dir, "full_description"),
                video=_read_optional(locale_dir, "video"),
            )
            for locale_dir in self.locales()
        ]

    def _changelog_for(self, locale_dir: Path, version_codes: Sequence[VersionCode]) -> str | None:
        changelog_dir = locale_dir / CHANGELOG_DIR
        if not changelog_dir.is_dir():
            return None
        for version_code in version_codes:
            text = _read_optional(changelog_dir, str(version_code))
            if text:
                return text
        return _read_optional(changelog_dir, DEFAULT_CHANGELOG)


@dataclass(frozen=True, slots=True)
class ChangelogFile:
    """A single changelog applied uniformly under one language code."""

    path: Path
    language: str = DEFAULT_LANGUAGE_CODE

    def release_notes(self, version_codes: Sequence[VersionCode]) -> list[LocalizedText]:
        del version_codes
        text = _read_text(self.path)
        if not text:
            log.info("Changelog %s is empty, no release notes attached", self.path)
            return []
        return [LocalizedText(language=self.language, text=text)]

    def listings(self) -> list[ListingText]:
        return []


def _read_optional(directory: Path, stem: str) -> str | None:
    for name in (f"{stem}.txt", stem):
        path = directory / name
        if path.is_file():
            return _read_text(path) or None
    return None


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Cannot read {path.name}: {exc}", context={"path": str(path)}) from exc

