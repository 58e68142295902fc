# hookbin/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Token:
    token: str
    created_at: str
    webhook_url: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "token": self.token,
            "created_at": self.created_at,
            "webhook_url": self.webhook_url,
        }


@dataclass(frozen=True)
class CapturedRequest:
    id: str
    date: str
    token_id: str
    method: str
    value: str
    headers: Dict[str, List[str]] = field(default_factory=dict)
    query_parameters: List[str] = field(default_factory=list)
    body: Optional[str] = None
    body_object: Optional[Any] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        # Field names follow the log format existing CLI consumers read.
        return {
            "Id": self.id,
            "Date": self.date,
            "TokenId": self.token_id,
            "MessageObject": {
                "Method": self.method,
                "Value": self.value,
                "Headers": self.headers,
                "QueryParameters": self.query_parameters,
                "Body": self.body,
                "BodyObject": self.body_object,
            },
            "Message": self.message,
        }

    def __repr__(self):
        return f"<CapturedRequest id={self.id} token={self.token_id} method={self.method}>"


@dataclass
class InboundEvent:
    """An HTTP request addressed to a token, before validation."""

    method: str
    target: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    query_string: str = ""
    body: bytes = b""


@dataclass(frozen=True)
class CaptureReceipt:
    id: str
    timestamp: str

    def to_dict(self) -> Dict[str, str]:
        return {"status": "received", "id": self.id, "timestamp": self.timestamp}
