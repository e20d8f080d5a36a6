"""
Translate noisy provider tracebacks into gateway errors, while preserving the
original exception for full tracebacks.
"""

from __future__ import annotations

import logging
from typing import Final, Optional, Type

import openai

__all__: tuple[str, ...] = (
    "GatewayError",
    "NoProviderConfigured",
    "UpstreamRequestFailed",
    "MalformedToolResultReference",
    "ToolArgumentParseFailure",
    "classify_error",
)


class GatewayError(RuntimeError):
    """Public gateway-level exception.

    Attributes:
        original_exc: The underlying exception, if any.
    """

    original_exc: Optional[Exception]

    def __init__(self, message: str, original_exc: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        if original_exc is not None:
            self.__cause__ = original_exc


class NoProviderConfigured(GatewayError):
    """No bound provider could be resolved for a request."""


class UpstreamRequestFailed(GatewayError):
    """Transport or HTTP-level failure talking to a provider."""


class MalformedToolResultReference(GatewayError, ValueError):
    """A tool-role message is missing the id of the call it answers."""


class ToolArgumentParseFailure(GatewayError, ValueError):
    """Accumulated tool-call argument text is not a JSON object.

    Never escapes the stream aggregator; it is replaced by a ``{"raw": ...}``
    wrapper and logged.
    """

    def __init__(self, text: str, original_exc: Optional[Exception] = None) -> None:
        super().__init__(f"Tool arguments are not a JSON object: {text!r}", original_exc)
        self.text = text


API_ERRORS: Final[tuple[Type[Exception], ...]] = (openai.APIError,)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIConnectionError,
    TimeoutError,
    ConnectionError,
)

RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (openai.RateLimitError,)


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
) -> GatewayError:
    """Wrap an SDK exception in UpstreamRequestFailed with a friendly, concise message.

    Gateway errors are returned unchanged.
    """
    if isinstance(exc, GatewayError):
        return exc

    log = logger or logging.getLogger("chat_gateway.exceptions")

    # RateLimitError and APIConnectionError both subclass APIError; order matters.
    if isinstance(exc, RATE_LIMIT_ERRORS):
        msg = "Rate-limit exceeded, please retry later"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem, unable to reach the LLM provider"
    elif isinstance(exc, openai.APIStatusError):
        msg = f"Provider returned HTTP {exc.status_code}"
    elif isinstance(exc, API_ERRORS):
        msg = "Provider reported an internal error"
    else:
        msg = exc.__class__.__name__

    log.warning("Wrapping provider exception: %s", exc, extra={"exc": exc})
    return UpstreamRequestFailed(f"{msg}: {exc}", exc)
