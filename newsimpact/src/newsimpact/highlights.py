import re
from typing import List, Optional

from .models.highlights import Highlight

NO_SIGNIFICANT_NEWS = "NO_SIGNIFICANT_NEWS"

_ORDINAL_RE = re.compile(r"^(\d+)\.\s+(.*)$")
_LINK_RE = re.compile(r"^link\s*:\s*(.*)$", re.IGNORECASE)
_TICKER_RE = re.compile(r"\$([A-Z0-9]{2,10})(?![A-Za-z0-9])")
# $250M, $10B, $100MM, $1BN, $2T, $5000: money, not tickers
_AMOUNT_RE = re.compile(r"^\d+(?:K|M|MM|B|BN|T)?$")


def is_no_significant_news(text: Optional[str]) -> bool:
    return (text or "").strip() == NO_SIGNIFICANT_NEWS


def extract_ticker(text: str) -> Optional[str]:
    """First `$TICKER` in the text that is not a dollar amount."""
    for m in _TICKER_RE.finditer(text or ""):
        token = m.group(1)
        if _AMOUNT_RE.match(token):
            continue
        return token
    return None


def extract_highlights(text: Optional[str]) -> List[Highlight]:
    """
    Parse the classifier's numbered list into Highlight records.

    Expected shape:
        1. <TOKEN/Theme>: <summary>
           Link: <URL>
    """
    if not text or is_no_significant_news(text):
        return []

    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    highlights: List[Highlight] = []
    current: Optional[Highlight] = None

    for line in lines:
        m = _ORDINAL_RE.match(line)
        if m and ":" in line:
            current = Highlight(index=int(m.group(1)), text=m.group(2).strip())
            current.ticker = extract_ticker(current.text)
            highlights.append(current)
            continue

        if current is None:
            continue

        link = _LINK_RE.match(line)
        if link:
            # First link wins
            if not current.url and link.group(1).strip():
                current.url = link.group(1).strip()
            continue

        current.text = f"{current.text} {line}"
        if current.ticker is None:
            current.ticker = extract_ticker(line)

    return highlights
