"""Port for release notes and store listing text."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from playrelease.domain.model import ListingText, LocalizedText, VersionCode


@runtime_checkable
class ReleaseMetadataSource(Protocol):
    """Source of release notes, and optionally of store listing text."""

    def release_notes(self, version_codes: Sequence[VersionCode]) -> list[LocalizedText]:
        """Return ordered (locale, text) notes for the given uploads."""
        ...

    def listings(self) -> list[ListingText]:
        """Return store listing text per locale; empty when the source has none."""
        ...
