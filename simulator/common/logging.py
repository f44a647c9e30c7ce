from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urlsplit, urlunsplit

URL_TOKEN_RE = re.compile(r"https?://[^\s\"'<>]+", re.IGNORECASE)
API_KEY_ASSIGNMENT_RE = re.compile(r"(?i)((?:x-)?api[-_]?key\s*[:=]\s*)([^\s,;\"'&]+)")

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _strip_url_query(token: str) -> str:
    trailing = ""
    while token and token[-1] in ".,);]}":
        trailing = token[-1] + trailing
        token = token[:-1]

    parsed = urlsplit(token)
    if parsed.scheme.lower() in {"http", "https"} and parsed.netloc:
        token = urlunsplit((parsed.scheme, parsed.netloc, parsed.path, "", ""))
    return f"{token}{trailing}"


def sanitize_text(value: str) -> str:
    masked = URL_TOKEN_RE.sub(lambda match: _strip_url_query(match.group(0)), value)
    return API_KEY_ASSIGNMENT_RE.sub(r"\1***", masked)


def sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, dict):
        return {key: sanitize_value(child) for key, child in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_value(item) for item in value)
    return value


def log_event(
    logger: logging.Logger,
    *,
    level: str,
    event: str,
    message: str,
    **fields: Any,
) -> None:
    extra = {key: sanitize_value(value) for key, value in fields.items()}
    extra["event"] = event
    safe_message = sanitize_text(message)

    if level == "exception":
        logger.exception(safe_message, extra=extra)
        return

    logger.log(_LEVELS.get(level, logging.INFO), safe_message, extra=extra)
