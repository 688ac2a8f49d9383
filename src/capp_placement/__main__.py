from __future__ import annotations

from capp_placement.ui.cli import run

run()
