"""
Declarative models for the audited entities and the change event log.
"""

from .base import Base, now_utc  # re-export

from .roles import Role
from .datatypes import Datatype
from .content import ContentData
from .change_events import ChangeEventRecord

__all__ = [
    "Base",
    "now_utc",
    "Role",
    "Datatype",
    "ContentData",
    "ChangeEventRecord",
]
