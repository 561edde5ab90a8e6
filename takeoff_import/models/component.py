from __future__ import annotations

from dataclasses import dataclass, field

"""IdentityKey and ComponentDraft models.

One ComponentDraft exists per unit of quantity. Its IdentityKey makes the
physical instance unique within a drawing: (commodity code, size, seq).
"""

__all__ = [
    "IdentityKey",
    "ComponentDraft",
]

SEQ_WIDTH = 3  # VTEST-001-001


@dataclass(frozen=True)
class IdentityKey:
    commodity_code: str
    size: str | None  # raw SIZE cell, None when absent
    seq: int

    def label(self, drawing: str | None = None, size_norm: str | None = None) -> str:
        """Human readable key, e.g. ``P-001-1X2-FIT-001-005`` or ``VTEST-001-001``."""
        parts: list[str] = []
        if drawing:
            parts.append(drawing)
        if size_norm:
            parts.append(size_norm)
        parts.append(self.commodity_code)
        parts.append(str(self.seq).zfill(SEQ_WIDTH))
        return "-".join(parts)

    def to_dict(self) -> dict[str, object]:
        return {"commodity_code": self.commodity_code, "size": self.size, "seq": self.seq}


@dataclass(frozen=True)
class ComponentDraft:
    """A component ready for insertion (not yet persisted)."""
    drawing: str  # normalized drawing number
    type: str
    identity_key: IdentityKey
    row_number: int  # source CSV row, kept for error attribution
    spec: str | None = None
    description: str | None = None
    comments: str | None = None
    area: str | None = None
    system: str | None = None
    test_package: str | None = None
    extra_attributes: dict[str, str] = field(default_factory=dict)
    drawing_raw: str | None = None

    @property
    def component_type(self) -> str:
        """Store-side type name (lowercase, e.g. 'field_weld')."""
        return self.type.lower()

    def attributes(self) -> dict[str, object]:
        """JSON attributes column payload."""
        attrs: dict[str, object] = {
            "cmdty_code": self.identity_key.commodity_code,
            "size": self.identity_key.size or "",
            "spec": self.spec or "",
            "description": self.description or "",
            "comments": self.comments or "",
        }
        if self.extra_attributes:
            attrs["unmapped_fields"] = dict(self.extra_attributes)
        return attrs
