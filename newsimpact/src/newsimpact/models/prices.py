from datetime import datetime
from pydantic import BaseModel

class OHLCPoint(BaseModel):
    """
    Single price candle. Timestamps are UTC.
    """
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def flat(cls, timestamp: datetime, price: float) -> "OHLCPoint":
        """Candle for a source that only knows one price per point."""
        return cls(timestamp=timestamp, open=price, high=price, low=price, close=price)
