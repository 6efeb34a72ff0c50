"""
Error taxonomy for the client.

  ValidationError   — bad local input, shown inline, no network call
  ServiceError      — a failed network / bridge call, retryable
  UnrecoverableError — needs outside remediation (e.g. no WebXR support)
"""

from __future__ import annotations

from typing import Optional

import httpx


class KaraokeError(Exception):
    """Base class for client errors."""


class ValidationError(KaraokeError):
    pass


class ServiceError(KaraokeError):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class UnrecoverableError(KaraokeError):
    pass


def error_from_response(response: httpx.Response, fallback: str) -> ServiceError:
    """Build a ServiceError from a non-2xx response, preferring the server's message."""
    message = f"{fallback}: {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        message = str(body["error"])
    return ServiceError(message, status=response.status_code)
