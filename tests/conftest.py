from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from playrelease.domain.model import Edit
from tests.support.edits_api import FakeEditsApi

if TYPE_CHECKING:
    from pathlib import Path

PACKAGE_NAME = "com.example.app"


@pytest.fixture
def fake_api() -> FakeEditsApi:
    return FakeEditsApi()


@pytest.fixture
def edit() -> Edit:
    return Edit(edit_id="edit-1", package_name=PACKAGE_NAME)


@pytest.fixture
def make_file(tmp_path: Path):  # noqa: ANN201
    def factory(relative: str, content: bytes = b"binary") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return factory
