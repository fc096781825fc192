"""
Per-request call context.

A CallContext is built at the start of every request handled by the
dispatch instance and handed, untouched, to the tool handler that ends
up serving the call. Today it only carries the bearer credential taken
from the Authorization header. The credential is extracted, never
verified: handlers decide whether its absence matters.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Return the token of an 'Authorization: Bearer <token>' header value.

    Args:
        authorization: Raw header value, or None if the header is missing.

    Returns:
        The text following 'Bearer ', or None when the header is missing,
        uses another scheme, or carries an empty token.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None

    token = authorization[len(BEARER_PREFIX):]
    return token or None


@dataclass(frozen=True)
class CallContext:
    """Request-local data passed to every tool handler."""

    auth_token: Optional[str] = None

    @property
    def has_credential(self) -> bool:
        return self.auth_token is not None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "CallContext":
        # Starlette's Headers is case-insensitive; plain dicts are checked
        # under both spellings.
        authorization = headers.get("authorization") or headers.get("Authorization")
        return cls(auth_token=extract_bearer_token(authorization))

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks.
        state = "present" if self.has_credential else "absent"
        return f"CallContext(auth_token=<{state}>)"
