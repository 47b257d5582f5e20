import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Uuid
from .base import Base, now_utc


class ContentData(Base):
    __tablename__ = 'content_data'
    content_data_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    parent_id = Column(Uuid, ForeignKey('content_data.content_data_id'), nullable=True)
    datatype_id = Column(Uuid, ForeignKey('datatypes.datatype_id'), nullable=False)
    route_id = Column(Uuid, nullable=True)
    author_id = Column(String(64), nullable=True)
    # 'draft'|'published'|'archived'
    status = Column(String(32), nullable=False, default='draft')
    date_created = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    date_modified = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_content_data_datatype_id', 'datatype_id'),
        Index('ix_content_data_parent_id', 'parent_id'),
    )
