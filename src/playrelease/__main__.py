from __future__ import annotations

from playrelease.ui.cli import run

run()
