"""Per-worktree metadata model."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class WorktreeMetadata:
    """Bookkeeping stored for one worktree in .gw/meta.json."""

    created_at: Optional[str] = None
    created_by: Optional[str] = None
    notes: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    last_activity_at: Optional[str] = None
    subdir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "WorktreeMetadata":
        """Create a record from its JSON form.

        Every field is optional; missing lists become empty and missing
        scalars become None. Values of the wrong type are dropped.
        """
        def _str(key: str) -> Optional[str]:
            value = data.get(key)
            return value if isinstance(value, str) else None

        def _list(key: str) -> List[str]:
            value = data.get(key)
            if not isinstance(value, list):
                return []
            return [str(item) for item in value]

        return cls(
            created_at=_str("created_at"),
            created_by=_str("created_by"),
            notes=_list("notes"),
            tags=_list("tags"),
            last_activity_at=_str("last_activity_at"),
            subdir=_str("subdir"),
        )

    def to_dict(self) -> dict:
        """Convert to the JSON form; subdir is omitted when unset."""
        data = {
            "created_at": self.created_at,
            "created_by": self.created_by,
            "notes": list(self.notes),
            "tags": list(self.tags),
            "last_activity_at": self.last_activity_at,
        }
        if self.subdir is not None:
            data["subdir"] = self.subdir
        return data
