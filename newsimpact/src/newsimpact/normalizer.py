import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Union

from .models.news import NewsItem, RawNewsRecord, RunStats

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = "UNKNOWN"
TWITTER_SOURCE = "TWITTER"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_TWITTER_HOSTS = ("https://twitter.com/", "https://x.com/", "http://twitter.com/", "http://x.com/")
# Anything below this is an epoch in seconds rather than milliseconds
_MS_THRESHOLD = 100_000_000_000

RawInput = Union[RawNewsRecord, dict]


def _field(record: RawInput, name: str, alias: Optional[str] = None) -> Any:
    if isinstance(record, RawNewsRecord):
        return getattr(record, name)
    if not isinstance(record, dict):
        return None
    value = record.get(name)
    if value is None and alias:
        value = record.get(alias)
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_epoch_ms(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        ms = float(value)
    except (TypeError, ValueError):
        return None
    if ms <= 0:
        return None
    if ms < _MS_THRESHOLD:
        ms *= 1000
    return ms


def record_time_ms(record: RawInput) -> Optional[float]:
    """Publish time in epoch ms: primary field first, then the secondary one."""
    primary = _as_epoch_ms(_field(record, "time"))
    if primary is not None:
        return primary
    return _as_epoch_ms(_field(record, "send_time", alias="sendTime"))


def _resolve_time(record: RawInput) -> datetime:
    ms = record_time_ms(record)
    if ms is None:
        return datetime.now(timezone.utc)
    try:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Unusable timestamp {ms!r}, using current time")
        return datetime.now(timezone.utc)


def _is_twitter_url(url: str) -> bool:
    return url.lower().startswith(_TWITTER_HOSTS)


def normalize_record(record: RawInput) -> NewsItem:
    """
    Convert one feed record into a NewsItem. Missing fields degrade to
    defaults, never to an exception.
    """
    published_at = _resolve_time(record)
    title = _as_text(_field(record, "title"))
    body = _as_text(_field(record, "body"))
    url = _as_text(_field(record, "url"))
    source = _as_text(_field(record, "source"))
    author = None

    if not source:
        source = TWITTER_SOURCE if _is_twitter_url(url) else UNKNOWN_SOURCE

    if source.upper() == TWITTER_SOURCE:
        if ":" in title:
            head, rest = title.split(":", 1)
            head = head.strip()
            body = rest.strip()
            if head:
                author = head
                source = head
                title = head
        else:
            body = title

    if not body:
        body = title

    return NewsItem(
        time=published_at.strftime(TIME_FORMAT),
        published_at=published_at,
        source=source,
        title=title,
        body=body,
        url=url,
        author=author,
    )


def normalize_records(records: Iterable[RawInput]) -> List[NewsItem]:
    """Normalize a batch; output has the same length and order as the input."""
    return [normalize_record(r) for r in records]


def filter_recent(
    records: Iterable[RawInput],
    hours_back: float,
    *,
    now: Optional[datetime] = None,
) -> List[RawInput]:
    """
    Keep records published within the last `hours_back` hours, newest first.
    Records without any publish time cannot be placed in the window and are dropped.
    """
    end = now or datetime.now(timezone.utc)
    cutoff_ms = (end - timedelta(hours=hours_back)).timestamp() * 1000

    timed = []
    for record in records:
        ms = record_time_ms(record)
        if ms is not None and ms >= cutoff_ms:
            timed.append((ms, record))

    timed.sort(key=lambda x: x[0], reverse=True)
    return [record for _, record in timed]


def build_stats(items: List[NewsItem]) -> RunStats:
    if not items:
        return RunStats()
    times = [i.published_at for i in items]
    return RunStats(total=len(items), oldest=min(times), newest=max(times))
