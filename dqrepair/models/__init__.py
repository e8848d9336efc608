"""Domain models for the record-level repair tool.

This package contains the schema, raw record, entity and output models shared by
validation, ingestion and repair.
"""

from .config_models import RepairConfig
from .entity import AttributeContainer, Entity, EntityGroup, Observation
from .invalid_attrs import InvalidAttrSet
from .record import RawRecord
from .repaired_cell import RepairConflictError, RepairedCell, RepairOutput
from .run_context import RunContext
from .schema import ATTR_COUNT, Attr, ColumnNames, FeedHeaderError

__all__ = [
    # Schema
    "ATTR_COUNT",
    "Attr",
    "ColumnNames",
    "FeedHeaderError",
    # Configuration models
    "RepairConfig",
    # Processing models
    "RawRecord",
    "Observation",
    "AttributeContainer",
    "Entity",
    "EntityGroup",
    "InvalidAttrSet",
    "RepairedCell",
    "RepairOutput",
    "RepairConflictError",
    "RunContext",
]
