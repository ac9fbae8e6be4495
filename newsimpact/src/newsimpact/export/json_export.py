import json
from pathlib import Path
from typing import Any


def export_json(data: Any, path: Path) -> Path:
    """Write `data` as UTF-8 JSON, creating the parent directory if needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True, default=str, ensure_ascii=False)
    return path
