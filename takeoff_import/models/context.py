from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

__all__ = [
    "ImportContext",
]

INLINE_SOURCE = "<inline>"


@dataclass(frozen=True)
class ImportContext:
    """Who is importing into which project, and from what source."""
    project_id: str
    user_id: str
    source: str = INLINE_SOURCE  # file name for CLI imports

    @staticmethod
    def coerce(value: ImportContext | Mapping[str, Any]) -> ImportContext:
        """Accept an ImportContext or a request-style mapping (camelCase or snake_case)."""
        if isinstance(value, ImportContext):
            return value
        project_id = value.get("projectId", value.get("project_id"))
        user_id = value.get("userId", value.get("user_id"))
        if not project_id or not user_id:
            raise ValueError("import context requires projectId and userId")
        return ImportContext(
            project_id=str(project_id),
            user_id=str(user_id),
            source=str(value.get("source", INLINE_SOURCE)),
        )
