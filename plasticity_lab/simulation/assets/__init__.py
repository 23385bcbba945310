"""Reference assets bundled with the simulation package."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Dict

__all__ = ["load_modifier_tables"]


def _read_json_asset(name: str) -> Dict[str, Any]:
    package = resources.files(__name__)
    with resources.as_file(package.joinpath(name)) as asset_path:
        with asset_path.open("r", encoding="utf-8") as handle:
            return json.load(handle)


def load_modifier_tables(path: str | Path | None = None) -> Dict[str, Any]:
    """Return the intervention, setting and duration tables.

    ``path`` points at a JSON file with the same layout as the bundled
    ``modifier_tables.json``; when omitted the bundled tables are used.
    """

    if path is None:
        return _read_json_asset("modifier_tables.json")
    with Path(path).open("r", encoding="utf-8") as handle:
        return json.load(handle)
