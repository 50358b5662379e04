from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List

_FIXTURE_DIR = Path(__file__).resolve().parent.parent.parent / "fixtures"


def load_json(filename: str) -> List[Dict[str, Any]]:
    file_path = _FIXTURE_DIR / filename
    with file_path.open(encoding="utf-8") as f:
        return json.load(f)


def load_brokers() -> List[Dict[str, Any]]:
    override = os.getenv("CONCIERGE_BROKER_FIXTURE")
    if override:
        with Path(override).open(encoding="utf-8") as f:
            return json.load(f)
    return load_json("brokers.json")
