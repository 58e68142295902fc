# hookbin/db.py
from __future__ import annotations

import json
import logging
import os
from typing import List

from sqlalchemy import ForeignKey, Index, String, Text, create_engine, delete, event, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import Conflict, StorageFailure
from .models import CapturedRequest, Token

logger = logging.getLogger(__name__)

# Milliseconds a writer waits on a locked SQLite database before giving up.
BUSY_TIMEOUT_MS = 5000


class Base(DeclarativeBase):
    pass


class TokenRecord(Base):
    __tablename__ = "tokens"

    token: Mapped[str] = mapped_column(String(36), primary_key=True)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)
    webhook_url: Mapped[str] = mapped_column(Text, nullable=False)


class WebhookRequestRecord(Base):
    __tablename__ = "webhook_requests"
    __table_args__ = (
        Index("idx_webhook_requests_token_id", "token_id"),
        Index("idx_webhook_requests_date", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    date: Mapped[str] = mapped_column(String(40), nullable=False)
    # No ondelete cascade: Storage.delete_token removes children explicitly.
    token_id: Mapped[str] = mapped_column(String(36), ForeignKey("tokens.token"), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    headers: Mapped[str] = mapped_column(Text, nullable=False)
    query_parameters: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    body_object: Mapped[str | None] = mapped_column(Text, nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)


def _is_memory_sqlite(url) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _to_record(request: CapturedRequest) -> WebhookRequestRecord:
    return WebhookRequestRecord(
        id=request.id,
        date=request.date,
        token_id=request.token_id,
        method=request.method,
        value=request.value,
        headers=json.dumps(request.headers),
        query_parameters=json.dumps(request.query_parameters),
        body=request.body,
        body_object=None if request.body_object is None else json.dumps(request.body_object),
        message=request.message,
    )


def _from_record(row: WebhookRequestRecord) -> CapturedRequest:
    return CapturedRequest(
        id=row.id,
        date=row.date,
        token_id=row.token_id,
        method=row.method,
        value=row.value,
        headers=json.loads(row.headers),
        query_parameters=json.loads(row.query_parameters),
        body=row.body,
        body_object=None if row.body_object is None else json.loads(row.body_object),
        message=row.message,
    )


class Storage:
    """Owns the engine and every read/write against tokens and captured requests.

    One instance is created per process and shared by reference. Each method
    runs in its own short session; write methods commit before returning.
    """

    def __init__(self, database_url: str):
        url = make_url(database_url)
        kwargs = {"echo": False, "future": True}

        if url.get_backend_name() == "sqlite":
            if _is_memory_sqlite(url):
                kwargs["poolclass"] = StaticPool
                kwargs["connect_args"] = {"check_same_thread": False}
            else:
                parent = os.path.dirname(os.path.abspath(url.database))
                os.makedirs(parent, exist_ok=True)

        self.engine = create_engine(url, **kwargs)
        if url.get_backend_name() == "sqlite":
            event.listen(self.engine, "connect", _set_sqlite_pragmas)

        self.SessionLocal = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False, future=True
        )

    def initialize(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to create schema") from exc
        logger.info("Database schema ready at %s", self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()

    def create_token(self, token: Token) -> None:
        try:
            with self.SessionLocal.begin() as session:
                session.add(
                    TokenRecord(
                        token=token.token,
                        created_at=token.created_at,
                        webhook_url=token.webhook_url,
                    )
                )
        except IntegrityError as exc:
            raise Conflict(f"token {token.token} already exists") from exc
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to insert token") from exc

    def token_exists(self, token_id: str) -> bool:
        stmt = select(TokenRecord.token).where(TokenRecord.token == token_id).limit(1)
        try:
            with self.SessionLocal() as session:
                return session.scalar(stmt) is not None
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to look up token") from exc

    def delete_token(self, token_id: str) -> None:
        try:
            with self.SessionLocal.begin() as session:
                session.execute(
                    delete(WebhookRequestRecord).where(WebhookRequestRecord.token_id == token_id)
                )
                session.execute(delete(TokenRecord).where(TokenRecord.token == token_id))
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to delete token") from exc

    def list_tokens(self) -> List[Token]:
        stmt = select(TokenRecord).order_by(TokenRecord.created_at.desc())
        try:
            with self.SessionLocal() as session:
                rows = session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to list tokens") from exc
        return [Token(token=r.token, created_at=r.created_at, webhook_url=r.webhook_url) for r in rows]

    def store_request(self, request: CapturedRequest) -> None:
        try:
            record = _to_record(request)
        except (TypeError, ValueError) as exc:
            raise StorageFailure("failed to serialize request") from exc

        try:
            with self.SessionLocal.begin() as session:
                session.add(record)
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to insert request") from exc

    def list_requests(self, token_id: str, limit: int) -> List[CapturedRequest]:
        stmt = (
            select(WebhookRequestRecord)
            .where(WebhookRequestRecord.token_id == token_id)
            .order_by(WebhookRequestRecord.date.desc(), WebhookRequestRecord.id.desc())
            .limit(limit)
        )
        try:
            with self.SessionLocal() as session:
                rows = session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to list requests") from exc

        try:
            return [_from_record(row) for row in rows]
        except ValueError as exc:
            raise StorageFailure("stored request is not valid JSON") from exc
