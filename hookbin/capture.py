# hookbin/capture.py
"""
Capture pipeline for requests sent to a token's webhook URL.

Each inbound event goes through, in order: token syntax check, token
existence check, body size guard, normalization and persistence. A request
is only written once every check has passed.
"""
from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl

from .db import Storage
from .errors import InternalFailure, InvalidToken, PayloadTooLarge, StorageFailure, TokenNotFound
from .models import CapturedRequest, CaptureReceipt, InboundEvent
from .utils.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 1024 * 1024


def is_valid_token(token: str) -> bool:
    """True for a hyphenated 8-4-4-4-12 UUID string (either case)."""
    try:
        return str(uuid.UUID(token)) == token.lower()
    except (ValueError, AttributeError, TypeError):
        return False


def flatten_headers(pairs: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    headers: Dict[str, List[str]] = {}
    for name, value in pairs:
        headers.setdefault(name, []).append(value)
    return headers


def parse_query(query_string: str) -> List[str]:
    """Decode a query string into literal "key=value" entries, keeping order and duplicates."""
    if not query_string:
        return []
    return [f"{key}={value}" for key, value in parse_qsl(query_string, keep_blank_values=True)]


def decode_body(body: bytes) -> str:
    # A body that is not valid UTF-8 is recorded as empty.
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        return ""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_body_object(text: str) -> Optional[Any]:
    """JSON value of the body, or None when the body is empty or not JSON."""
    if not text:
        return None
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None


class CapturePipeline:
    def __init__(self, storage: Storage, clock: Optional[Clock] = None, max_body_bytes: int = MAX_BODY_BYTES):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.max_body_bytes = max_body_bytes

    def capture(self, token: str, event: InboundEvent) -> CaptureReceipt:
        if not is_valid_token(token):
            logger.warning("Invalid token received: %r", token)
            raise InvalidToken()

        try:
            exists = self.storage.token_exists(token)
        except StorageFailure:
            logger.exception("Failed to check if token exists")
            raise InternalFailure()
        if not exists:
            raise TokenNotFound()

        if len(event.body) > self.max_body_bytes:
            logger.warning("Request body too large for token %s: %d bytes", token, len(event.body))
            raise PayloadTooLarge()

        request = self.normalize(token, event)

        try:
            self.storage.store_request(request)
        except StorageFailure:
            logger.exception("Failed to store webhook request for token %s", token)
            raise InternalFailure()

        logger.info("Received %s request for token %s: %s", request.method, token, request.id)
        return CaptureReceipt(id=request.id, timestamp=request.date)

    def normalize(self, token: str, event: InboundEvent) -> CapturedRequest:
        text = decode_body(event.body)
        return CapturedRequest(
            id=str(uuid.uuid4()),
            date=self.clock.timestamp(),
            token_id=token,
            method=event.method,
            value=event.target,
            headers=flatten_headers(event.headers),
            query_parameters=parse_query(event.query_string),
            body=text or None,
            body_object=parse_body_object(text),
        )
