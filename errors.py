"""
error types for the portfolio assistant and the normalizer that turns any
failure value into one message that is safe to show a visitor

the store, the file download and the openai backend all fail in their own
shapes (exceptions, api error payloads with json inside, bare strings, odd
objects) so every failure is classified into a small tagged variant where it
is caught, and normalize_error works only on that variant
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

import openai

GENERIC_CONTEXT_ERROR = (
    "Could not load portfolio context. This usually means you are not "
    "authenticated against a private resource. Try logging in as an administrator."
)

# repr() of an arbitrary python object, e.g. "<Foo object at 0x7f...>"
_OBJECT_REPR = re.compile(r"<[\w.]+ object at 0x[0-9a-fA-F]+>")


class PortfolioAssistantError(Exception):
    """base class for everything the assistant raises on purpose"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedFormat(PortfolioAssistantError, ValueError):
    pass


class ExtractionFailure(PortfolioAssistantError, ValueError):
    pass


class ContextFetchError(PortfolioAssistantError):
    """store, download or extraction failure while building the context"""


class ChatInitError(PortfolioAssistantError):
    pass


class StreamError(PortfolioAssistantError):
    pass


class UploadValidationError(PortfolioAssistantError, ValueError):
    """rejected locally before anything touches the network"""


# --- failure variant ---


@dataclass(frozen=True)
class MessageFailure:
    """an exception or error object that carries its own message"""
    message: str


@dataclass(frozen=True)
class BackendFailure:
    """a backend error payload, message may itself be json with a nested error"""
    message: str


@dataclass(frozen=True)
class TextFailure:
    """someone raised or rejected with a plain string"""
    message: str


@dataclass(frozen=True)
class OpaqueFailure:
    """nothing usable, kept only for logging"""
    detail: str


Failure = Union[MessageFailure, BackendFailure, TextFailure, OpaqueFailure]


def _backend_message(value: Any) -> Optional[str]:
    """
    pulls the message out of a backend shaped error
    covers openai api errors (body holds the error object) and anything
    carrying an error mapping or error object with a message on it
    """
    if isinstance(value, openai.APIError) and isinstance(value.body, dict):
        message = value.body.get("message")
        if isinstance(message, str) and message.strip():
            return message

    if isinstance(value, dict):
        error = value.get("error")
    else:
        error = getattr(value, "error", None)

    if isinstance(error, dict):
        message = error.get("message")
    else:
        message = getattr(error, "message", None)

    if isinstance(message, str) and message.strip():
        return message
    return None


def classify_failure(value: Any) -> Failure:
    """maps any caught value onto the failure variant"""
    if isinstance(value, (MessageFailure, BackendFailure, TextFailure, OpaqueFailure)):
        return value

    backend_message = _backend_message(value)
    if backend_message is not None:
        return BackendFailure(backend_message)

    if isinstance(value, BaseException):
        message = getattr(value, "message", None)
        if not isinstance(message, str) or not message.strip():
            message = str(value)
        return MessageFailure(message)

    if isinstance(value, str):
        return TextFailure(value)

    if isinstance(value, dict):
        message = value.get("message")
    else:
        message = getattr(value, "message", None)
    if isinstance(message, str):
        return MessageFailure(message)

    return OpaqueFailure(repr(value))


def _innermost_message(outer: str) -> str:
    try:
        parsed = json.loads(outer)
    except ValueError:
        return outer

    if isinstance(parsed, dict):
        inner = parsed.get("error")
        if isinstance(inner, dict):
            message = inner.get("message")
            if isinstance(message, str) and message.strip():
                return message
    return outer


def _is_unhelpful(message: str) -> bool:
    if not message.strip():
        return True
    if "{}" in message or "object object" in message.lower():
        return True
    return bool(_OBJECT_REPR.search(message))


def normalize_error(value: Any, fallback: str = GENERIC_CONTEXT_ERROR) -> str:
    """
    turns any failure value into one non-empty human readable string
    never returns a raw object dump, falls back to the generic explanation
    """
    failure = classify_failure(value)

    if isinstance(failure, BackendFailure):
        message = _innermost_message(failure.message)
    elif isinstance(failure, (MessageFailure, TextFailure)):
        message = failure.message
    else:
        message = ""

    if _is_unhelpful(message):
        return fallback
    return message.strip()
