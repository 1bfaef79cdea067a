"""Resolve user-supplied file patterns and filter values."""

from __future__ import annotations

import glob
import re
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from playrelease.domain.errors import InputError
from playrelease.domain.model import (
    AllVersionCodes,
    ExcludeMatchingVersionCodes,
    ExcludeVersionCodes,
    VersionCode,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from playrelease.domain.model import FilterPolicy

log = getLogger(__name__)

FILTER_TYPES = ("all", "list", "expression")


def resolve_glob_paths(pattern: str, *, root: Path | None = None) -> list[Path]:
    """Return every file matching ``pattern``, sorted; relative patterns start at ``root``."""

    # CI systems tend to quote whole paths that contain spaces.
    cleaned = pattern.strip().replace('"', "")
    if not cleaned:
        return []
    candidate = Path(cleaned).expanduser()
    if not candidate.is_absolute() and root is not None:
        candidate = root / candidate
    matches = sorted(glob.glob(str(candidate), recursive=True))
    log.debug("Pattern %s matched %s", pattern, matches)
    return [Path(match) for match in matches if Path(match).is_file()]


def resolve_glob_path(pattern: str | None, *, root: Path | None = None) -> Path | None:
    """Return the first file matching ``pattern``, or ``None`` if no pattern was given.

    A pattern that matches nothing is an input error.
    """

    if pattern is None or not pattern.strip():
        return None
    matches = resolve_glob_paths(pattern, root=root)
    if not matches:
        raise InputError(f"Not found {pattern}")
    return matches[0]


def resolve_additional_paths(patterns: Iterable[str], *, root: Path | None = None) -> list[Path]:
    """Resolve several patterns into one list, first occurrence wins."""

    paths: list[Path] = []
    for pattern in patterns:
        for path in resolve_glob_paths(pattern, root=root):
            if path not in paths:
                paths.append(path)
    return paths


def parse_version_code_list(value: str) -> frozenset[VersionCode]:
    """Parse a comma-separated list of positive version codes."""

    codes: set[VersionCode] = set()
    incorrect: list[str] = []
    for raw in value.split(","):
        entry = raw.strip()
        if not entry:
            continue
        if entry.isdecimal() and int(entry) > 0:
            codes.add(VersionCode(int(entry)))
        else:
            incorrect.append(entry)
    if incorrect:
        raise InputError(
            "Incorrect version code filter",
            context={"entries": incorrect},
        )
    return frozenset(codes)


def build_filter_policy(
    filter_type: str,
    *,
    version_codes: str | None = None,
    expression: str | None = None,
) -> FilterPolicy:
    """Turn the filter type and its value into a ``FilterPolicy``."""

    if filter_type == "all":
        return AllVersionCodes()
    if filter_type == "list":
        if not version_codes or not version_codes.strip():
            raise InputError("Version code list filter requires at least one version code")
        return ExcludeVersionCodes(codes=parse_version_code_list(version_codes))
    if filter_type == "expression":
        if not expression:
            raise InputError("Version code expression filter requires an expression")
        try:
            re.compile(expression)
        except re.error as exc:
            raise InputError(
                f"Invalid version code expression: {exc}", context={"expression": expression}
            ) from exc
        return ExcludeMatchingVersionCodes(pattern=expression)
    raise InputError(
        f"Unknown version code filter type {filter_type!r}",
        context={"expected": ", ".join(FILTER_TYPES)},
    )
