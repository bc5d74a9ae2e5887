"""Per-request correlation id for quotematch log lines.

The id lives in a ContextVar so every log record emitted while a match or
decision request is handled carries it.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

NO_REQUEST_ID = "no-request-id"

# Caller-supplied ids end up in every log line; keep them short and inert
_ACCEPTED_ID_RE = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def generate_request_id() -> str:
    return str(uuid.uuid4())


def resolve_request_id(header_value: Optional[str]) -> str:
    """Use the caller's X-Request-ID when it is a plain token, else a new id.

    Args:
        header_value: Raw X-Request-ID header, None if absent

    Returns:
        str: Request id to bind for this request
    """
    if header_value and _ACCEPTED_ID_RE.fullmatch(header_value):
        return header_value
    return generate_request_id()


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)
