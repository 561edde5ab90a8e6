"""Takeoff CSV import pipeline.

Validates a takeoff CSV (one row per line item, QTY >= 0), fans each row out
into one component per unit of quantity and persists the whole batch in one
all-or-nothing call.
"""

from .models import ImportResult
from .models.config_models import ImportConfig
from .models.context import ImportContext
from .services.column_mapper import map_columns
from .services.drawing import normalize_drawing
from .services.identity import expand_rows
from .services.orchestrator import import_takeoff
from .services.row_validator import RowValidator

__all__ = [
    "ImportConfig",
    "ImportContext",
    "ImportResult",
    "RowValidator",
    "expand_rows",
    "import_takeoff",
    "map_columns",
    "normalize_drawing",
]

__version__ = "1.0.0"
