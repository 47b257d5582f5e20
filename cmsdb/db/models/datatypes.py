import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Uuid
from .base import Base, now_utc


class Datatype(Base):
    __tablename__ = 'datatypes'
    datatype_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    parent_id = Column(Uuid, ForeignKey('datatypes.datatype_id'), nullable=True)
    label = Column(String(255), nullable=False)
    type = Column(String(64), nullable=False)
    author_id = Column(String(64), nullable=True)
    date_created = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    date_modified = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_datatypes_parent_id', 'parent_id'),
    )
