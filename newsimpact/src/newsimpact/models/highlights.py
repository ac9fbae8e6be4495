from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from .news import NewsItem, RunStats


class MarketSymbol(BaseModel):
    """
    A ticker resolved to identifiers the market backends understand.
    """
    ticker: str
    coin_id: Optional[str] = None  # secondary backend asset id
    name: Optional[str] = None
    pair: Optional[str] = None  # primary backend trading pair


class Highlight(BaseModel):
    """
    One item of the classifier's answer. Enrichment fields are filled in
    place as prices come back.
    """
    index: int
    text: str
    ticker: Optional[str] = None
    url: Optional[str] = None
    symbol: Optional[MarketSymbol] = None
    price_change: Optional[float] = None
    time_ago: Optional[str] = None
    anchor_time: Optional[datetime] = None
    source_item: Optional[NewsItem] = None


class Usage(BaseModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class Classification(BaseModel):
    """Raw answer of the classification service."""
    content: str = ""
    usage: Optional[Usage] = None
    model: Optional[str] = None


class RunStatus(str, Enum):
    OK = "ok"
    NO_NEWS = "no_news"
    NO_SIGNIFICANT_NEWS = "no_significant_news"
    CLASSIFICATION_FAILED = "classification_failed"
    SUPERSEDED = "superseded"


class AnalysisResult(BaseModel):
    status: RunStatus = RunStatus.OK
    highlights: List[Highlight] = Field(default_factory=list)
    stats: RunStats = Field(default_factory=RunStats)
    usage: Optional[Usage] = None
    error: Optional[str] = None
    started_at: datetime
    hours_back: float
