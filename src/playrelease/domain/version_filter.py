"""Reconcile the version codes that stay active on a track.

Pure functions only: no I/O and no hidden state. ``current_active`` is the
server-reported order of the track's first release; ``uploaded`` is the order in
which this run uploaded artifacts.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, assert_never

from .model import AllVersionCodes, ExcludeMatchingVersionCodes, ExcludeVersionCodes

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .model import FilterPolicy, VersionCode


def requires_current_track(policy: FilterPolicy) -> bool:
    """Return whether ``policy`` needs the track's current active set."""

    return not isinstance(policy, AllVersionCodes)


def reconcile(
    current_active: Sequence[VersionCode],
    uploaded: Sequence[VersionCode],
    policy: FilterPolicy,
) -> list[VersionCode]:
    """Compute the ordered version codes that should be active after the update."""

    if isinstance(policy, AllVersionCodes):
        return list(uploaded)

    is_excluded = _exclusion_test(policy)
    kept = [code for code in current_active if not is_excluded(code)]
    for code in uploaded:
        if code not in kept:
            kept.append(code)
    return kept


def _exclusion_test(
    policy: ExcludeVersionCodes | ExcludeMatchingVersionCodes,
) -> Callable[[VersionCode], bool]:
    if isinstance(policy, ExcludeVersionCodes):
        codes = policy.codes
        return lambda code: code in codes
    if isinstance(policy, ExcludeMatchingVersionCodes):
        pattern = re.compile(policy.pattern)
        return lambda code: pattern.fullmatch(str(code)) is not None
    assert_never(policy)
