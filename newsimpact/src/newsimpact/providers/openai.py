import json
import logging
from typing import List, Optional

from ..config import DEFAULT_MODEL
from ..errors import AuthenticationError, ProviderError
from ..highlights import NO_SIGNIFICANT_NEWS
from ..http import HttpClient
from ..models.highlights import Classification, Usage
from ..models.news import NewsItem

logger = logging.getLogger(__name__)

BASE_URL = "https://api.openai.com/v1"

SYSTEM_PROMPT = f"""
You are the senior crypto-macro analyst on a high-frequency trading desk.

Treat an item as SIGNIFICANT only if it carries NEW information with high,
near-term price impact on major tokens or the broader crypto market:
regulation and enforcement, ETF decisions, exchange listings, delistings,
hacks and outages, funding rounds of $10M or more, large partnerships,
token buybacks and fee switches, whale moves of $100M or more, unlocks of
at least 1% of supply, mainnet upgrades, macro surprises (rate decisions,
CPI, payrolls), and explicit trading calls from well-known traders, or the
same token signalled by two or more independent traders in this batch.
Ignore commentary or opinion without fresh facts.

Output format, one item per entry, numbered sequentially, blank line between:

1. <TOKEN/Theme>: <one-sentence summary, at most 25 words, tokens as $TICKER>
   Link: <URL>

Remove duplicates (same token and same fact), keeping the most reputable
source. At most 15 items.
If nothing qualifies respond exactly {NO_SIGNIFICANT_NEWS}
No explanations or extra text.
""".strip()


class OpenAIClassifier:
    """Chat-completions client that picks market-moving items out of a batch."""

    def __init__(
        self,
        http: HttpClient,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = BASE_URL,
        max_tokens: int = 1000,
    ):
        self._http = http
        self._api_key = api_key
        self.model = model
        self._base_url = base_url.rstrip("/")
        self._max_tokens = max_tokens

    def build_messages(self, items: List[NewsItem]) -> List[dict]:
        batch = json.dumps([i.for_prompt() for i in items], ensure_ascii=False)
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"<BATCH>\n{batch}\n</BATCH>"},
        ]

    async def classify(self, items: List[NewsItem]) -> Classification:
        if not self._api_key:
            raise AuthenticationError("OpenAI API key is missing. Set OPENAI_API_KEY or pass --api-key.")

        payload = {
            "model": self.model,
            "messages": self.build_messages(items),
            "temperature": 0,
            "max_tokens": self._max_tokens,
            "top_p": 1,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            data = await self._http.post_json(f"{self._base_url}/chat/completions", payload, headers=headers)
        except ProviderError as e:
            status = e.details.get("status")
            detail = e.details.get("message") or e.message
            if status in (401, 403):
                raise AuthenticationError(f"OpenAI error {status}: {detail}", details={"status": status})
            label = f"OpenAI error {status}" if status else "OpenAI error"
            raise ProviderError(f"{label}: {detail}", details=e.details)

        return self._parse(data)

    def _parse(self, data) -> Classification:
        if not isinstance(data, dict):
            raise ProviderError("OpenAI returned an unexpected payload")

        content = None
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            if isinstance(message, dict):
                content = message.get("content")
        if not isinstance(content, str):
            raise ProviderError(
                "OpenAI returned an unexpected payload",
                details={"keys": sorted(data.keys())},
            )

        usage: Optional[Usage] = None
        if isinstance(data.get("usage"), dict):
            u = data["usage"]
            usage = Usage(
                prompt_tokens=u.get("prompt_tokens"),
                completion_tokens=u.get("completion_tokens"),
                total_tokens=u.get("total_tokens"),
            )
            logger.info(
                f"Classification used {usage.total_tokens} tokens "
                f"(prompt {usage.prompt_tokens}, completion {usage.completion_tokens})"
            )

        return Classification(content=content, usage=usage, model=data.get("model") or self.model)
