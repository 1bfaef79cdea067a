from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from playrelease.adapters.filesystem import (
    FILTER_TYPES,
    build_filter_policy,
    resolve_additional_paths,
    resolve_glob_path,
)
from playrelease.app import run_release
from playrelease.config import configure_logging
from playrelease.domain.errors import InputError
from playrelease.domain.model import (
    DEFAULT_LANGUAGE_CODE,
    DEFAULT_UPDATE_PRIORITY,
    DEFAULT_USER_FRACTION,
    ArtifactKind,
)
from playrelease.domain.release import NotesMode, ReleaseRequest, build_artifacts

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish a release to Google Play")
    parser.add_argument("--package-name", required=True, help="Application identifier")
    parser.add_argument("--track", required=True, help="Release track, e.g. internal or beta")
    parser.add_argument(
        "--working-dir",
        type=Path,
        default=None,
        help="Directory that relative file patterns start from (default: cwd)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    artifacts = parser.add_argument_group("artifacts")
    artifacts.add_argument("--apk", help="Pattern of the primary APK (first match is used)")
    artifacts.add_argument(
        "--additional-apk",
        action="append",
        default=[],
        help="Pattern of additional APKs (repeatable, every match is used)",
    )
    artifacts.add_argument("--bundle", help="Pattern of the primary bundle (first match is used)")
    artifacts.add_argument(
        "--additional-bundle",
        action="append",
        default=[],
        help="Pattern of additional bundles (repeatable, every match is used)",
    )
    artifacts.add_argument(
        "--obb-for-main-apk",
        action="store_true",
        help="Upload the expansion file found for the primary APK",
    )
    artifacts.add_argument(
        "--obb-for-additional-apks",
        action="store_true",
        help="Upload the expansion files found for additional APKs",
    )
    artifacts.add_argument(
        "--update-only-store-listing",
        action="store_true",
        help="Skip binary uploads and only update store metadata",
    )
    artifacts.add_argument("--mapping-file", help="Pattern of the deobfuscation mapping file")

    notes = parser.add_argument_group("release notes")
    notes.add_argument(
        "--metadata-root",
        help="Per-locale metadata directory (takes precedence over --changelog-file)",
    )
    notes.add_argument("--changelog-file", help="Changelog applied to every version code")
    notes.add_argument(
        "--language-code",
        default=DEFAULT_LANGUAGE_CODE,
        help="Language of --changelog-file (default: %(default)s)",
    )

    rollout = parser.add_argument_group("rollout")
    rollout.add_argument(
        "--version-code-filter",
        choices=FILTER_TYPES,
        default="all",
        help="Which active version codes to replace (default: %(default)s)",
    )
    rollout.add_argument(
        "--replace-list",
        help="Comma-separated version codes to retire (with --version-code-filter list)",
    )
    rollout.add_argument(
        "--replace-expression",
        help="Regular expression of version codes to retire (with --version-code-filter "
        "expression)",
    )
    rollout.add_argument(
        "--user-fraction",
        type=float,
        default=DEFAULT_USER_FRACTION,
        help="Fraction of users receiving the release (default: %(default)s)",
    )
    rollout.add_argument(
        "--update-priority",
        type=int,
        default=DEFAULT_UPDATE_PRIORITY,
        help="In-app update priority, 0 to 5 (default: %(default)s)",
    )
    rollout.add_argument("--release-name", help="Human-readable release name")
    rollout.add_argument(
        "--changes-not-sent-for-review",
        action="store_true",
        help="Commit without sending the changes for review",
    )
    return parser.parse_args(list(argv))


def _build_request(args: argparse.Namespace) -> ReleaseRequest:
    root: Path = args.working_dir or Path.cwd()

    main_apk = resolve_glob_path(args.apk, root=root)
    main_bundle = resolve_glob_path(args.bundle, root=root)
    apks = build_artifacts(
        ArtifactKind.APK,
        primary=main_apk,
        additional=resolve_additional_paths(args.additional_apk, root=root),
        expansion_for_primary=args.obb_for_main_apk,
        expansion_for_additional=args.obb_for_additional_apks,
    )
    bundles = build_artifacts(
        ArtifactKind.BUNDLE,
        primary=main_bundle,
        additional=resolve_additional_paths(args.additional_bundle, root=root),
    )

    notes_mode = NotesMode.NONE
    metadata_root: Path | None = None
    changelog_file: Path | None = None
    if args.metadata_root:
        notes_mode = NotesMode.METADATA
        metadata_root = _rooted(args.metadata_root, root)
        if args.changelog_file:
            log.warning("Ignoring --changelog-file because --metadata-root is set")
    elif args.changelog_file:
        notes_mode = NotesMode.CHANGELOG
        changelog_file = _rooted(args.changelog_file, root)

    return ReleaseRequest(
        package_name=args.package_name,
        track=args.track,
        apks=apks,
        bundles=bundles,
        update_only_store_listing=args.update_only_store_listing,
        mapping_file=resolve_glob_path(args.mapping_file, root=root),
        notes_mode=notes_mode,
        metadata_root=metadata_root,
        changelog_file=changelog_file,
        language_code=args.language_code,
        policy=build_filter_policy(
            args.version_code_filter,
            version_codes=args.replace_list,
            expression=args.replace_expression,
        ),
        user_fraction=args.user_fraction,
        update_priority=args.update_priority,
        release_name=args.release_name,
        changes_not_sent_for_review=args.changes_not_sent_for_review,
    )


def _rooted(value: str, root: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        request = _build_request(parsed_args)
        request.validate()
    except InputError:
        log.exception("Invalid release inputs")
        sys.exit(2)

    outcome = run_release(request)
    if not outcome.succeeded:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(130)


def run() -> None:
    """Console-script entry point: load `.env`, install the SIGINT handler, run."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
