"""
Data models for the Bookmark Agent.

This module defines the internal representation of a bookmark as it is held
by the repositories and transformed by the agent pipeline.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

MIN_RATING = 0
MAX_RATING = 5


class UrlStatus(str, Enum):
    """Reachability status of a bookmark URL."""

    VALID = "valid"
    INVALID = "invalid"
    CHECKING = "checking"
    IGNORED = "ignored"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "UrlStatus":
        """Parse a status value, degrading to UNKNOWN for anything unexpected."""
        if isinstance(value, UrlStatus):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


# Wire (camelCase) name -> attribute name
WIRE_FIELD_NAMES = {
    "folderId": "folder_id",
    "faviconUrl": "favicon_url",
    "urlStatus": "url_status",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
ATTRIBUTE_TO_WIRE = {v: k for k, v in WIRE_FIELD_NAMES.items()}


def dedupe_tags(tags: Iterable[Any]) -> List[str]:
    """
    Clean a tag list.

    Empty tags are dropped and duplicates are removed case-insensitively,
    keeping the first spelling seen.

    Args:
        tags: Raw tag values

    Returns:
        Cleaned list of tags in original order
    """
    seen = set()
    cleaned = []
    for tag in tags or []:
        if tag is None:
            continue
        text = str(tag).strip()
        if not text:
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(text)
    return cleaned


def clamp_rating(value: Any) -> int:
    """Coerce a rating into the 0-5 range, treating junk as unrated."""
    try:
        rating = int(float(value))
    except (TypeError, ValueError):
        return MIN_RATING
    return max(MIN_RATING, min(MAX_RATING, rating))


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Any) -> float:
    """
    Parse an ISO-8601 timestamp into epoch seconds.

    Missing or unparseable values map to 0 (the epoch) so they sort first.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


@dataclass
class Bookmark:
    """
    Internal representation of a bookmark.

    Ids are assigned by the repository that stores the bookmark; the agent
    never invents them.
    """

    id: Optional[str] = None
    title: str = ""
    url: str = ""
    description: str = ""
    tags: List[str] = field(default_factory=list)
    rating: int = 0
    folder_id: str = ""
    favicon_url: str = ""
    url_status: UrlStatus = UrlStatus.VALID
    unreachable: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    position: Optional[int] = None

    def __post_init__(self):
        """Enforce field invariants after creation."""
        self.rating = clamp_rating(self.rating)
        self.tags = [str(t) for t in (self.tags or []) if t is not None and str(t).strip()]
        self.url_status = UrlStatus.parse(self.url_status)

    def is_valid(self) -> bool:
        """
        Check if this bookmark has minimum required data.

        Returns:
            True if the bookmark has a URL and a title
        """
        return bool(self.url and self.url.strip() and self.get_effective_title())

    def get_effective_title(self) -> str:
        """Title, falling back to the URL."""
        if self.title and self.title.strip():
            return self.title.strip()
        return (self.url or "").strip()

    @property
    def effective_status(self) -> UrlStatus:
        """Status as displayed: unreachable bookmarks always show as invalid."""
        if self.unreachable:
            return UrlStatus.INVALID
        return self.url_status

    def get_field(self, name: str) -> Any:
        """
        Look up a field by attribute or wire name.

        Unknown fields degrade to an empty string rather than raising.
        """
        attr = WIRE_FIELD_NAMES.get(name, name)
        if attr.startswith("_") or attr not in _FIELD_NAMES:
            return ""
        value = getattr(self, attr)
        if value is None:
            return ""
        return value

    def get_field_text(self, name: str) -> str:
        """String form of a field, the way the filters compare it."""
        value = self.get_field(name)
        if isinstance(value, UrlStatus):
            return value.value
        if isinstance(value, list):
            return ",".join(str(v) for v in value)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def copy(self) -> "Bookmark":
        """Create a copy of this bookmark"""
        return replace(self, tags=list(self.tags))

    def with_patch(self, patch: Dict[str, Any]) -> "Bookmark":
        """
        Return a copy with a partial update applied.

        Keys may use wire or attribute names; unknown keys and ``id`` are
        ignored. Tags are taken as given, without de-duplication.
        """
        values = {}
        for key, value in patch.items():
            attr = WIRE_FIELD_NAMES.get(key, key)
            if attr in _FIELD_NAMES and attr != "id":
                values[attr] = value
        if "tags" in values:
            tags = values["tags"] or []
            values["tags"] = tags.split(",") if isinstance(tags, str) else list(tags)
        return replace(self.copy(), **values)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert bookmark to its wire dictionary (camelCase keys).

        Returns:
            Dictionary representation of bookmark
        """
        data = {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "tags": list(self.tags),
            "rating": self.rating,
            "folderId": self.folder_id,
            "faviconUrl": self.favicon_url,
            "urlStatus": self.url_status.value,
            "unreachable": self.unreachable,
            "createdAt": self.created_at or "",
            "updatedAt": self.updated_at or "",
        }
        if self.position is not None:
            data["position"] = self.position
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bookmark":
        """
        Create a bookmark from a dictionary.

        Accepts both the camelCase wire names and snake_case attribute names.
        Missing titles default to the URL.

        Args:
            data: Bookmark-shaped mapping

        Returns:
            Bookmark object
        """
        values: Dict[str, Any] = {}
        for key, value in data.items():
            attr = WIRE_FIELD_NAMES.get(key, key)
            if attr in _FIELD_NAMES:
                values[attr] = value

        url = str(values.get("url") or "").strip()
        title = str(values.get("title") or "").strip() or url

        tags = values.get("tags") or []
        if isinstance(tags, str):
            tags = tags.split(",")

        position = values.get("position")
        if not isinstance(position, int) or isinstance(position, bool):
            position = None

        bookmark_id = values.get("id")

        return cls(
            id=str(bookmark_id) if bookmark_id not in (None, "") else None,
            title=title,
            url=url,
            description=str(values.get("description") or ""),
            tags=dedupe_tags(tags),
            rating=values.get("rating", 0),
            folder_id=str(values.get("folder_id") or ""),
            favicon_url=str(values.get("favicon_url") or ""),
            url_status=values.get("url_status") or UrlStatus.VALID,
            unreachable=bool(values.get("unreachable", False)),
            created_at=values.get("created_at") or None,
            updated_at=values.get("updated_at") or None,
            position=position,
        )


_FIELD_NAMES = frozenset(f.name for f in fields(Bookmark))
