"""Webhook Authenticator Interface

Defines the contract for verifying inbound provider callbacks before any
of their content is trusted.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
from pydantic import BaseModel, Field

CONTENT_DIGEST_HEADER = "content-digest"
SIGNATURE_HEADER = "signature"
SIGNATURE_INPUT_HEADER = "signature-input"
SIGNATURE_DATE_HEADER = "signature-date"

SIGNATURE_HEADERS = (
    CONTENT_DIGEST_HEADER,
    SIGNATURE_HEADER,
    SIGNATURE_INPUT_HEADER,
    SIGNATURE_DATE_HEADER,
)


class InboundRequest(BaseModel):
    """Raw HTTP request as received, before any parsing of the body"""

    method: str = Field(..., description="HTTP method")
    url: str = Field(..., description="Full request URL")
    headers: Dict[str, str] = Field(default_factory=dict, description="Headers, lower-cased names")
    body: bytes = Field(default=b"", description="Raw request body")

    def header(self, name: str) -> Optional[str]:
        value = self.headers.get(name.lower())
        if value is None:
            return None
        value = value.strip()
        return value or None


def mask_secret(value: Optional[str]) -> str:
    if not value:
        return ""
    return f"{value[:6]}***"


def mask_signature_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Signature-related headers with values masked, for logging"""
    return {
        name: mask_secret(headers.get(name))
        for name in SIGNATURE_HEADERS
        if headers.get(name)
    }


class WebhookAuthenticator(ABC):
    """
    Verifies the content digest and message signature of a callback

    Implementations check, in order, the Content-Digest against the raw
    body and then the Signature over the covered request components.
    """

    @abstractmethod
    def verify(self, request: InboundRequest) -> None:
        """
        Verify an inbound request

        Args:
            request: Raw request

        Raises:
            VerificationError: Digest or signature missing, malformed or wrong
        """
        pass
