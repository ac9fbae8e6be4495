from pathlib import Path
from typing import List, Dict, Any


def _format_change(value: Any) -> str:
    if value is None:
        return "n/a"
    try:
        return f"{float(value):+.2f}%"
    except (TypeError, ValueError):
        return "n/a"


def export_analysis_md(result: Dict[str, Any], path: Path):
    """Export an analysis result (as dumped JSON) to Markdown."""
    lines: List[str] = []
    lines.append(f"# News Impact: {str(result.get('started_at', ''))[:19]}")
    lines.append("")
    lines.append(f"**Window**: last {result.get('hours_back')}h | **Status**: {result.get('status')}")

    stats = result.get("stats") or {}
    lines.append(
        f"**Items analysed**: {stats.get('total', 0)} "
        f"(oldest {stats.get('oldest') or 'n/a'}, newest {stats.get('newest') or 'n/a'})"
    )
    usage = result.get("usage")
    if usage:
        lines.append(
            f"**Tokens**: {usage.get('total_tokens')} "
            f"(prompt {usage.get('prompt_tokens')}, completion {usage.get('completion_tokens')})"
        )
    if result.get("error"):
        lines.append(f"**Error**: {result['error']}")
    lines.append("")

    highlights = result.get("highlights") or []
    lines.append("## Highlights")
    if not highlights:
        lines.append("- No significant news.")
    for h in highlights:
        lines.append(f"### {h.get('index')}. {h.get('text')}")
        meta = []
        if h.get("ticker"):
            meta.append(f"**Ticker**: {h['ticker']}")
        meta.append(f"**Change**: {_format_change(h.get('price_change'))}")
        if h.get("time_ago"):
            meta.append(f"**Published**: {h['time_ago']}")
        lines.append(" | ".join(meta))
        if h.get("url"):
            lines.append(f"[Source]({h['url']})")
        lines.append("")

    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
