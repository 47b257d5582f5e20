from sqlalchemy import Column, String, DateTime, BigInteger, Index
from ..types import JSONDocument
from .base import Base, now_utc


class ChangeEventRecord(Base):
    __tablename__ = 'change_events'
    event_id = Column(String(36), primary_key=True)
    hlc_timestamp = Column(BigInteger, nullable=False)
    wall_timestamp = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    node_id = Column(String(64), nullable=False)
    table_name = Column(String(128), nullable=False)
    record_id = Column(String(64), nullable=False)
    # 'INSERT'|'UPDATE'|'DELETE'
    operation = Column(String(16), nullable=False)
    action = Column(String(32), nullable=False)
    user_id = Column(String(64), nullable=True)
    old_values = Column(JSONDocument, nullable=True)
    new_values = Column(JSONDocument, nullable=True)
    # Use a non-reserved Python attribute name while keeping DB column name 'metadata'
    metadata_json = Column('metadata', JSONDocument, nullable=True)
    request_id = Column(String(128), nullable=True)
    ip = Column(String(64), nullable=True)
    synced_at = Column(DateTime(timezone=True), nullable=True)
    consumed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_change_events_table_record', 'table_name', 'record_id'),
        Index('ix_change_events_hlc_timestamp', 'hlc_timestamp'),
        Index('ix_change_events_user_id', 'user_id'),
    )

    def get_metadata(self):
        return self.metadata_json
