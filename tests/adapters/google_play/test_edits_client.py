"""Request shapes and error mapping of the edits client over a mock transport."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable  # noqa: TC003
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx
import pytest

from playrelease.adapters.google_play import GooglePlayAPIError, GooglePlayEditsClient
from playrelease.adapters.http_resilience import RateLimit
from playrelease.config import GooglePlayConfig, ServiceAccountConfig, default_resilience_config
from playrelease.domain.model import (
    Edit,
    ExpansionFileType,
    ListingText,
    LocalizedText,
    ReleaseStatus,
    TrackRelease,
    VersionCode,
)

if TYPE_CHECKING:
    from pathlib import Path

PACKAGE = "com.example.app"
EDIT_PREFIX = f"/androidpublisher/v3/applications/{PACKAGE}/edits/e-42"
UPLOAD_PREFIX = f"/upload/androidpublisher/v3/applications/{PACKAGE}/edits/e-42"

type Handler = Callable[[httpx.Request], httpx.Response]


class StaticTokens:
    def __init__(self) -> None:
        self.issued = 0

    def token(self) -> str:
        self.issued += 1
        return f"token-{self.issued}"


def _client(
    handler: Handler,
    tokens: StaticTokens | None = None,
    *,
    ratelimit: RateLimit | None = None,
) -> GooglePlayEditsClient:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    resilience = replace(
        default_resilience_config(),
        transport=httpx.MockTransport(async_handler),
    )
    if ratelimit is not None:
        resilience = replace(resilience, ratelimit=ratelimit)
    config = GooglePlayConfig(
        service_account=ServiceAccountConfig(client_email="ci@example.iam", private_key="pem"),
        resilience=resilience,
    )
    return GooglePlayEditsClient(config=config, credentials=tokens or StaticTokens())



@pytest.fixture
def edit() -> Edit:
    return Edit(edit_id="e-42", package_name=PACKAGE)


def test_open_edit_posts_to_edits_collection() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "e-42", "expiryTimeSeconds": "1700000000"})

    edit = _client(handler).open_edit(PACKAGE)

    assert edit == Edit(
        edit_id="e-42",
        package_name=PACKAGE,
        expires_at=datetime.fromtimestamp(1_700_000_000, tz=UTC),
    )
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == f"/androidpublisher/v3/applications/{PACKAGE}/edits"
    assert request.headers["Authorization"] == "Bearer token-1"


def test_every_request_asks_for_a_token(edit: Edit) -> None:
    tokens = StaticTokens()

    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(200, json={"track": "beta", "releases": []})

    client = _client(handler, tokens)
    client.get_track(edit, "beta")
    client.get_track(edit, "beta")

    assert tokens.issued == 2


def test_upload_apk_sends_media_upload(edit: Edit, tmp_path: Path) -> None:
    apk = tmp_path / "app.apk"
    apk.write_bytes(b"PK\x03\x04apk")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"versionCode": 314, "binary": {"sha1": "abc"}})

    version_code = _client(handler).upload_apk(edit, apk)

    assert version_code == 314
    request = seen[0]
    assert request.url.path == f"{UPLOAD_PREFIX}/apks"
    assert request.url.params["uploadType"] == "media"
    assert request.headers["Content-Type"] == "application/vnd.android.package-archive"
    assert request.content == b"PK\x03\x04apk"


def test_upload_bundle(edit: Edit, tmp_path: Path) -> None:
    bundle = tmp_path / "app.aab"
    bundle.write_bytes(b"aab")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"versionCode": 2718})

    assert _client(handler).upload_bundle(edit, bundle) == 2718
    assert seen[0].url.path == f"{UPLOAD_PREFIX}/bundles"
    assert seen[0].headers["Content-Type"] == "application/octet-stream"


def test_upload_expansion_file_reports_size(edit: Edit, tmp_path: Path) -> None:
    obb = tmp_path / "main.obb"
    obb.write_bytes(b"obb")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"expansionFile": {"fileSize": "3"}})

    result = _client(handler).upload_expansion_file(
        edit, version_code=VersionCode(5), path=obb, file_type=ExpansionFileType.MAIN
    )

    assert result.file_size == 3
    assert seen[0].url.path == f"{UPLOAD_PREFIX}/apks/5/expansionFiles/main"


def test_upload_deobfuscation_file(edit: Edit, tmp_path: Path) -> None:
    mapping = tmp_path / "mapping.txt"
    mapping.write_text("a -> b")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"deobfuscationFile": {"symbolType": "proguard"}})

    _client(handler).upload_deobfuscation_file(edit, version_code=VersionCode(9), path=mapping)

    assert seen[0].url.path == f"{UPLOAD_PREFIX}/apks/9/deobfuscationFiles/proguard"


def test_get_track_reads_releases(edit: Edit) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"{EDIT_PREFIX}/tracks/production"
        return httpx.Response(
            200,
            json={
                "track": "production",
                "releases": [
                    {"versionCodes": ["10", "11"], "status": "inProgress", "userFraction": 0.2},
                    {"versionCodes": ["9"], "status": "statusUnspecified"},
                ],
            },
        )

    state = _client(handler).get_track(edit, "production")

    assert state.active_version_codes == (10, 11)
    assert state.releases[0].status is ReleaseStatus.IN_PROGRESS
    assert state.releases[1].status is None


def test_update_track_sends_string_version_codes(edit: Edit) -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(200, json=body)

    release = TrackRelease(
        version_codes=(VersionCode(12), VersionCode(13)),
        status=ReleaseStatus.IN_PROGRESS,
        user_fraction=0.5,
        update_priority=2,
        release_notes=(LocalizedText(language="en-US", text="New"),),
    )

    state = _client(handler).update_track(edit, "beta", release)

    assert bodies[0] == {
        "track": "beta",
        "releases": [
            {
                "versionCodes": ["12", "13"],
                "status": "inProgress",
                "userFraction": 0.5,
                "inAppUpdatePriority": 2,
                "releaseNotes": [{"language": "en-US", "text": "New"}],
            }
        ],
    }
    assert state.active_version_codes == (12, 13)


def test_completed_release_omits_fraction(edit: Edit) -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(200, json=body)

    release = TrackRelease(version_codes=(VersionCode(1),), status=ReleaseStatus.COMPLETED)
    _client(handler).update_track(edit, "production", release)

    sent_release = bodies[0]["releases"][0]  # type: ignore[index]
    assert "userFraction" not in sent_release
    assert sent_release["status"] == "completed"


def test_update_listing_uses_locale_path(edit: Edit) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=json.loads(request.content))

    _client(handler).update_listing(
        edit, ListingText(language="de-DE", title="Beispiel", short_description="Kurz")
    )

    assert seen[0].url.path == f"{EDIT_PREFIX}/listings/de-DE"
    assert json.loads(seen[0].content) == {
        "language": "de-DE",
        "title": "Beispiel",
        "shortDescription": "Kurz",
    }


@pytest.mark.parametrize(("flag", "expected"), [(False, None), (True, "true")])
def test_commit_query(edit: Edit, flag: bool, expected: str | None) -> None:  # noqa: FBT001
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "e-42"})

    committed = _client(handler).commit(edit, changes_not_sent_for_review=flag)

    assert committed.edit_id == "e-42"
    assert seen[0].url.path == f"{EDIT_PREFIX}:commit"
    assert seen[0].url.params.get("changesNotSentForReview") == expected


def test_api_error_carries_message_and_status(edit: Edit) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(
            403,
            json={
                "error": {
                    "code": 403,
                    "message": "The caller does not have permission",
                    "status": "PERMISSION_DENIED",
                }
            },
        )

    with pytest.raises(GooglePlayAPIError) as excinfo:
        _client(handler).commit(edit)

    assert excinfo.value.status_code == 403
    assert excinfo.value.status == "PERMISSION_DENIED"
    assert "The caller does not have permission" in str(excinfo.value)


def test_non_json_error_body(edit: Edit) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(502, text="Bad gateway")

    with pytest.raises(GooglePlayAPIError, match="HTTP 502"):
        _client(handler).get_track(edit, "beta")


def test_transport_failure_is_api_error(edit: Edit) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GooglePlayAPIError, match="connection refused"):
        _client(handler).get_track(edit, "beta")


def test_unexpected_payload_is_api_error(edit: Edit) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(GooglePlayAPIError, match="Unexpected Google Play response"):
        _client(handler).open_edit(PACKAGE)


def test_rate_limit_spans_consecutive_calls() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(200, json={"id": "e-42"})

    client = _client(handler, ratelimit=RateLimit(max_calls=1, per_seconds=0.3))

    started = time.monotonic()
    for _ in range(3):
        client.open_edit(PACKAGE)
    elapsed = time.monotonic() - started

    # One call per 0.3s: the second and third calls each wait for a slot.
    assert elapsed >= 0.45


def test_token_is_fetched_outside_the_event_loop(edit: Edit) -> None:
    loop_running: list[bool] = []

    class LoopAwareTokens(StaticTokens):
        def token(self) -> str:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                loop_running.append(False)
            else:
                loop_running.append(True)
            return super().token()

    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(200, json={"track": "beta"})

    _client(handler, LoopAwareTokens()).get_track(edit, "beta")

    assert loop_running == [False]
