"""Release error taxonomy.

Every error names the step that failed (``operation``) and the identifiers needed
to diagnose it without remote-side logs. Remote causes are chained via
``raise ... from``.
"""

from __future__ import annotations

from collections.abc import Mapping


class ReleaseError(RuntimeError):
    """Base class for errors that terminate a release run."""

    operation: str = "release"

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        if operation is not None:
            self.operation = operation
        self.message = message
        self.context: dict[str, object] = dict(context or {})
        super().__init__(self._render())

    def _render(self) -> str:
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        prefix = f"[{self.operation}] {self.message}"
        return f"{prefix} ({details})" if details else prefix


class AuthError(ReleaseError):
    operation = "authenticate"


class InputError(ReleaseError):
    operation = "validate_input"


class EditOpenError(ReleaseError):
    operation = "open_edit"


class ArtifactUploadError(ReleaseError):
    operation = "upload_artifact"


class TrackFetchError(ReleaseError):
    operation = "get_track"


class TrackUpdateError(ReleaseError):
    operation = "update_track"


class ListingUpdateError(ReleaseError):
    operation = "update_listing"


class CommitError(ReleaseError):
    operation = "commit"


class TransactionStateError(RuntimeError):
    """Raised when an edit transaction step is called out of order."""
