import uuid
from sqlalchemy import Column, String, DateTime, Uuid
from ..types import JSONDocument
from .base import Base, now_utc


class Role(Base):
    __tablename__ = 'roles'
    role_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    label = Column(String(255), nullable=False)
    permissions = Column(JSONDocument, nullable=True)
    date_created = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    date_modified = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)
