"""
Pydantic schemas for command parameters and read models.
"""

from .roles import RoleBase, RoleCreate, RoleUpdate, Role
from .datatypes import DatatypeBase, DatatypeCreate, DatatypeUpdate, Datatype
from .content import ContentStatus, ContentDataBase, ContentDataCreate, ContentDataUpdate, ContentData
from .change_events import StoredChangeEvent

__all__ = [
    "RoleBase",
    "RoleCreate",
    "RoleUpdate",
    "Role",
    "DatatypeBase",
    "DatatypeCreate",
    "DatatypeUpdate",
    "Datatype",
    "ContentStatus",
    "ContentDataBase",
    "ContentDataCreate",
    "ContentDataUpdate",
    "ContentData",
    "StoredChangeEvent",
]
