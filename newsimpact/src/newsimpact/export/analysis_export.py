from pathlib import Path
from typing import Any, Dict

from . import json_export, md_export


def build_analysis_basename(result: Dict[str, Any]) -> str:
    started = str(result.get("started_at") or "undated")[:19]
    stamp = started.replace(":", "").replace("-", "").replace("T", "-").replace(" ", "-")
    return f"analysis-{stamp}"


def export_analysis(result: Dict[str, Any], out_root: str = "./exports") -> Dict[str, str]:
    """
    Write the result as JSON and Markdown.
    Structure: {out_root}/analyses/analysis-YYYYMMDD-HHMMSS.{json,md}
    """
    export_dir = Path(out_root) / "analyses"
    export_dir.mkdir(parents=True, exist_ok=True)

    base = build_analysis_basename(result)
    json_path = export_dir / f"{base}.json"
    md_path = export_dir / f"{base}.md"

    json_export.export_json(result, json_path)
    md_export.export_analysis_md(result, md_path)

    return {"json": str(json_path), "markdown": str(md_path)}
