from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest

from playrelease.domain.edit_transaction import EditState, EditTransaction, publish
from playrelease.domain.errors import (
    ArtifactUploadError,
    CommitError,
    EditOpenError,
    InputError,
    ListingUpdateError,
    TransactionStateError,
)
from playrelease.domain.model import (
    Artifact,
    ArtifactKind,
    ExcludeVersionCodes,
    ListingText,
    LocalizedText,
    ReleaseStatus,
    VersionCode,
)
from playrelease.domain.ports.publishing import RemoteCallError
from playrelease.domain.release import NotesMode, ReleaseRequest
from tests.support.edits_api import track_with

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from tests.support.edits_api import FakeEditsApi

PACKAGE = "com.example.app"


@dataclass
class StaticMetadata:
    notes: list[LocalizedText] = field(default_factory=list[LocalizedText])
    listing_texts: list[ListingText] = field(default_factory=list[ListingText])
    requested_codes: list[tuple[VersionCode, ...]] = field(
        default_factory=list[tuple[VersionCode, ...]]
    )

    def release_notes(self, version_codes: Sequence[VersionCode]) -> list[LocalizedText]:
        self.requested_codes.append(tuple(version_codes))
        return list(self.notes)

    def listings(self) -> list[ListingText]:
        return list(self.listing_texts)


def _apk(make_file: Callable[[str], Path], name: str = "app.apk") -> Artifact:
    return Artifact(path=make_file(f"build/{name}"), kind=ArtifactKind.APK, is_primary=True)


def _bundle(make_file: Callable[[str], Path], name: str = "app.aab") -> Artifact:
    return Artifact(path=make_file(f"build/{name}"), kind=ArtifactKind.BUNDLE)


def test_publish_runs_steps_in_order(
    fake_api: FakeEditsApi, make_file: Callable[[str], Path]
) -> None:
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="production",
        apks=(_apk(make_file),),
        bundles=(_bundle(make_file),),
    )

    report = publish(fake_api, request)

    assert fake_api.call_names == [
        "open_edit",
        "upload_apk",
        "upload_bundle",
        "update_track",
        "commit",
    ]
    assert report.version_codes == (100, 101)
    assert report.track_updated
    assert report.edit_id == "edit-1"


def test_commit_failure_is_reported_as_commit_error(
    fake_api: FakeEditsApi, make_file: Callable[[str], Path]
) -> None:
    fake_api.fail_on["commit"] = RemoteCallError("edit expired", status_code=400)
    request = ReleaseRequest(package_name=PACKAGE, track="beta", apks=(_apk(make_file),))

    with pytest.raises(CommitError) as excinfo:
        publish(fake_api, request)

    assert excinfo.value.context == {"package": PACKAGE, "edit_id": "edit-1"}
    assert "edit expired" in str(excinfo.value)


def test_upload_failure_stops_before_track_and_commit(
    fake_api: FakeEditsApi, make_file: Callable[[str], Path]
) -> None:
    fake_api.fail_on["upload_bundle"] = RemoteCallError("bad bundle")
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="beta",
        apks=(_apk(make_file),),
        bundles=(_bundle(make_file),),
    )

    with pytest.raises(ArtifactUploadError):
        publish(fake_api, request)

    assert fake_api.call_names == ["open_edit", "upload_apk", "upload_bundle"]


def test_open_failure(fake_api: FakeEditsApi, make_file: Callable[[str], Path]) -> None:
    fake_api.fail_on["open_edit"] = RemoteCallError("package not found", status_code=404)
    request = ReleaseRequest(package_name=PACKAGE, track="beta", apks=(_apk(make_file),))

    with pytest.raises(EditOpenError):
        publish(fake_api, request)

    assert fake_api.call_names == ["open_edit"]


def test_listing_only_with_changelog_updates_track_without_uploads(
    fake_api: FakeEditsApi, tmp_path: Path
) -> None:
    fake_api.current_track = track_with("production", 41)
    metadata = StaticMetadata(notes=[LocalizedText(language="en-US", text="Bug fixes")])
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="production",
        update_only_store_listing=True,
        notes_mode=NotesMode.CHANGELOG,
        changelog_file=tmp_path / "changelog.txt",
        policy=ExcludeVersionCodes(frozenset()),
    )

    report = publish(fake_api, request, metadata=metadata)

    assert fake_api.call_names == ["open_edit", "get_track", "update_track", "commit"]
    release = fake_api.updated_releases[0]
    assert release.version_codes == (41,)
    assert release.release_notes == (LocalizedText(language="en-US", text="Bug fixes"),)
    assert report.version_codes == ()


def test_listing_only_with_metadata_leaves_track_alone(
    fake_api: FakeEditsApi, tmp_path: Path
) -> None:
    metadata = StaticMetadata(
        listing_texts=[
            ListingText(language="en-US", title="Example"),
            ListingText(language="de-DE"),
        ]
    )
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="production",
        update_only_store_listing=True,
        notes_mode=NotesMode.METADATA,
        metadata_root=tmp_path,
    )

    report = publish(fake_api, request, metadata=metadata)

    assert fake_api.call_names == ["open_edit", "update_listing", "commit"]
    assert report.listings_updated == 1
    assert not report.track_updated


def test_metadata_notes_follow_uploaded_codes(
    fake_api: FakeEditsApi, make_file: Callable[[str], Path], tmp_path: Path
) -> None:
    notes = [LocalizedText(language="fr-FR", text="Corrections")]
    metadata = StaticMetadata(notes=notes)
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="beta",
        apks=(_apk(make_file),),
        notes_mode=NotesMode.METADATA,
        metadata_root=tmp_path,
        user_fraction=0.1,
    )

    publish(fake_api, request, metadata=metadata)

    assert metadata.requested_codes == [(VersionCode(100),)]
    release = fake_api.updated_releases[0]
    assert release.release_notes == tuple(notes)
    assert release.status is ReleaseStatus.IN_PROGRESS


def test_mapping_file_goes_to_first_version_code(
    fake_api: FakeEditsApi, make_file: Callable[[str], Path]
) -> None:
    mapping = make_file("build/mapping.txt")
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="internal",
        apks=(_apk(make_file), _apk(make_file, "second.apk")),
        mapping_file=mapping,
    )

    publish(fake_api, request)

    mapping_calls = [
        detail for name, detail in fake_api.calls if name == "upload_deobfuscation_file"
    ]
    assert mapping_calls == [(VersionCode(100), mapping)]


def test_missing_mapping_file_is_input_error(
    fake_api: FakeEditsApi, make_file: Callable[[str], Path], tmp_path: Path
) -> None:
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="internal",
        apks=(_apk(make_file),),
        mapping_file=tmp_path / "missing-mapping.txt",
    )

    with pytest.raises(InputError):
        publish(fake_api, request)

    assert "commit" not in fake_api.call_names


def test_commit_flag_is_forwarded(
    fake_api: FakeEditsApi, make_file: Callable[[str], Path]
) -> None:
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="internal",
        apks=(_apk(make_file),),
        changes_not_sent_for_review=True,
    )

    publish(fake_api, request)

    assert fake_api.committed_with is True


def test_notes_mode_without_source_is_rejected(fake_api: FakeEditsApi, tmp_path: Path) -> None:
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="internal",
        update_only_store_listing=True,
        notes_mode=NotesMode.CHANGELOG,
        changelog_file=tmp_path / "notes.txt",
    )

    with pytest.raises(InputError):
        publish(fake_api, request)

    assert fake_api.calls == []


def test_listing_failure(fake_api: FakeEditsApi, tmp_path: Path) -> None:
    fake_api.fail_on["update_listing"] = RemoteCallError("title too long")
    metadata = StaticMetadata(listing_texts=[ListingText(language="en-US", title="x" * 80)])
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="production",
        update_only_store_listing=True,
        notes_mode=NotesMode.METADATA,
        metadata_root=tmp_path,
    )

    with pytest.raises(ListingUpdateError) as excinfo:
        publish(fake_api, request, metadata=metadata)

    assert excinfo.value.context["language"] == "en-US"


def test_steps_out_of_order_are_refused(fake_api: FakeEditsApi) -> None:
    transaction = EditTransaction(api=fake_api, package_name=PACKAGE)

    with pytest.raises(TransactionStateError):
        transaction.commit()
    with pytest.raises(TransactionStateError):
        transaction.upload_artifacts(())

    transaction.open()
    with pytest.raises(TransactionStateError):
        transaction.open()


def test_no_step_after_commit(fake_api: FakeEditsApi) -> None:
    transaction = EditTransaction(api=fake_api, package_name=PACKAGE)
    transaction.open()
    transaction.commit()

    assert transaction.state is EditState.COMMITTED
    with pytest.raises(TransactionStateError):
        transaction.commit()
    with pytest.raises(TransactionStateError):
        transaction.update_track(track="beta", policy=ExcludeVersionCodes(frozenset()))


def test_edit_is_unavailable_before_open(fake_api: FakeEditsApi) -> None:
    transaction = EditTransaction(api=fake_api, package_name=PACKAGE)

    with pytest.raises(TransactionStateError):
        _ = transaction.edit


def test_missing_metadata_root_fails_before_opening_an_edit(
    fake_api: FakeEditsApi, tmp_path: Path
) -> None:
    request = ReleaseRequest(
        package_name=PACKAGE,
        track="production",
        update_only_store_listing=True,
        notes_mode=NotesMode.METADATA,
        metadata_root=tmp_path / "missing",
    )

    with pytest.raises(InputError):
        publish(fake_api, request, metadata=StaticMetadata())

    assert fake_api.calls == []
