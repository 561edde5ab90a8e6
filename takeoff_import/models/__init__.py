"""Domain models for the takeoff CSV import pipeline.

This package contains all domain model classes used throughout the application:
canonical fields, column mapping, raw rows, validation results, component
drafts and the structured import result.
"""

from .column_mapping import ColumnMapping, ColumnMatch, MatchTier
from .component import ComponentDraft, IdentityKey
from .config_models import DuplicateScope, ImportConfig
from .context import ImportContext
from .fields import REQUIRED_FIELDS, CanonicalField, ErrorKind, RowCategory, ValidationStatus
from .import_result import ImportErrorDetail, ImportResult
from .row_data import RawRow
from .validation import FieldError, TakeoffRowData, ValidationResult

__all__ = [
    # Fields / vocabularies
    "CanonicalField",
    "REQUIRED_FIELDS",
    "ErrorKind",
    "RowCategory",
    "ValidationStatus",
    # Mapping
    "ColumnMapping",
    "ColumnMatch",
    "MatchTier",
    # Processing models
    "RawRow",
    "TakeoffRowData",
    "FieldError",
    "ValidationResult",
    "IdentityKey",
    "ComponentDraft",
    # Config / request
    "ImportConfig",
    "DuplicateScope",
    "ImportContext",
    # Results
    "ImportErrorDetail",
    "ImportResult",
]
