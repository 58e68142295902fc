# hookbin/tokens.py
from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional

from .db import Storage
from .errors import InternalFailure, StorageFailure
from .models import Token
from .utils.clock import Clock, SystemClock
from .utils.urls import derive_webhook_url

logger = logging.getLogger(__name__)


class TokenManager:
    """Issues, lists and deletes webhook tokens."""

    def __init__(self, storage: Storage, base_url: Optional[str] = None, clock: Optional[Clock] = None):
        self.storage = storage
        self.base_url = base_url
        self.clock = clock or SystemClock()

    def create_token(self, headers: Dict[str, List[str]]) -> Token:
        """Create a token; `headers` are those of the API request asking for it."""
        token_id = str(uuid.uuid4())
        token = Token(
            token=token_id,
            created_at=self.clock.timestamp(),
            webhook_url=derive_webhook_url(self.base_url, headers, token_id),
        )

        try:
            self.storage.create_token(token)
        except StorageFailure:
            logger.exception("Failed to create token")
            raise InternalFailure()

        logger.info("Created new token: %s", token_id)
        return token

    def list_tokens(self) -> List[Token]:
        try:
            return self.storage.list_tokens()
        except StorageFailure:
            logger.exception("Failed to list tokens")
            raise InternalFailure()

    def delete_token(self, token_id: str) -> None:
        try:
            self.storage.delete_token(token_id)
        except StorageFailure:
            logger.exception("Failed to delete token %s", token_id)
            raise InternalFailure()

        logger.info("Deleted token: %s", token_id)
