import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime

from shorturl_app.database.connection import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class URL(Base):
    """
    A short link: maps a unique short code to the original URL.

    Rows are created once by the shorten endpoint and never updated.
    """
    __tablename__ = "urls"

    id = Column(String(36), primary_key=True, default=_new_id)
    original_url = Column(String, nullable=False)
    # unique=True creates the index and is the authoritative conflict signal
    short_code = Column(String(16), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
