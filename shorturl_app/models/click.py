from sqlalchemy import Column, String, DateTime, ForeignKey, Text

from shorturl_app.database.connection import Base
from shorturl_app.models.url import _new_id, _utcnow


class Click(Base):
    """
    One recorded visit to a short link.

    clicked_at is stored in UTC. device_type may be empty for rows written
    before classification existed; reports reclassify those from user_agent.
    """
    __tablename__ = "clicks"

    id = Column(String(36), primary_key=True, default=_new_id)
    url_id = Column(String(36), ForeignKey("urls.id"), nullable=False, index=True)
    clicked_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    ip_address = Column(String(64), default="")
    user_agent = Column(Text, default="")
    referrer = Column(Text, default="")
    device_type = Column(String(32), default="")
    location = Column(String(255), default="")
