# hookbin/logs.py
from __future__ import annotations

import logging
from typing import List

from .db import Storage
from .errors import InternalFailure, StorageFailure
from .models import CapturedRequest

logger = logging.getLogger(__name__)

MAX_LOG_COUNT = 1000


class LogReader:
    """Read-only access to captured requests, newest first."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def get_logs(self, token: str, count: int) -> List[CapturedRequest]:
        # Unknown tokens are not an error here; they just have no requests.
        limit = max(0, min(count, MAX_LOG_COUNT))
        try:
            return self.storage.list_requests(token, limit)
        except StorageFailure:
            logger.exception("Failed to get webhook requests for token %s", token)
            raise InternalFailure()
