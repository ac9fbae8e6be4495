from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class RawNewsRecord(BaseModel):
    """
    News record as delivered by the feed. Times are epoch milliseconds.
    """
    time: Optional[float] = None
    send_time: Optional[float] = Field(None, alias="sendTime")
    source: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    url: Optional[str] = None

    class Config:
        populate_by_name = True


class NewsItem(BaseModel):
    """
    Normalized news item, the shape sent to the classifier.
    """
    time: str  # "YYYY-MM-DD HH:MM:SS", UTC
    published_at: datetime
    source: str
    title: str
    body: str
    url: str = ""
    author: Optional[str] = None

    def for_prompt(self) -> dict:
        data = {
            "time": self.time,
            "source": self.source,
            "title": self.title,
            "body": self.body,
            "url": self.url,
        }
        if self.author:
            data["author"] = self.author
        return data


class RunStats(BaseModel):
    """Size and time span of the batch that was analysed."""
    total: int = 0
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None
