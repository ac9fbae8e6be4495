import json
import traceback

ENVELOPE_VERSION = 1


class NewsImpactError(Exception):
    """Base exception for newsimpact"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(NewsImpactError):
    """Bad CLI input or override file"""


class ProviderError(NewsImpactError):
    """Feed, classifier or market backend failed or answered garbage"""


class AuthenticationError(ProviderError):
    """Credential rejected by the classification service"""


class UnknownError(NewsImpactError):
    """Unexpected errors"""


def format_error(e: Exception) -> str:
    """Format exception as the CLI JSON error envelope"""
    if not isinstance(e, NewsImpactError):
        e = UnknownError(str(e), details={"traceback": traceback.format_exc().splitlines()})

    payload = {
        "ok": False,
        "error": e.to_dict(),
        "meta": {"version": ENVELOPE_VERSION},
    }
    return json.dumps(payload, indent=2, default=str)
