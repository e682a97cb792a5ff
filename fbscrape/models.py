"""
Data models for fbscrape.

Using dataclasses for clean, typed data structures. Every model exposes
``to_dict()`` for the JSON tool boundary; optional fields that were never
resolved are dropped from the output.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any, Union


def _prune(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values so unresolved optional fields stay absent."""
    return {k: v for k, v in data.items() if v is not None}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Comment:
    """A comment, with replies nested to whatever depth the markup has."""

    id: str
    author: str = "Unknown"
    content: str = ""
    author_url: Optional[str] = None
    timestamp: Optional[str] = None
    reactions_count: int = 0
    replies: List["Comment"] = field(default_factory=list)

    @property
    def replies_count(self) -> int:
        return len(self.replies)

    def to_dict(self) -> Dict[str, Any]:
        data = _prune({
            "id": self.id,
            "author": self.author,
            "author_url": self.author_url,
            "content": self.content,
            "timestamp": self.timestamp,
            "reactions_count": self.reactions_count,
            "replies_count": self.replies_count,
        })
        if self.replies:
            data["replies"] = [r.to_dict() for r in self.replies]
        return data


@dataclass
class Post:
    """
    A post extracted from markup.

    ``id`` is only locally distinct within one parse call; it is synthetic
    when the markup carried no usable identifier.
    """

    id: str
    content: str
    author: str = "Unknown"
    author_url: Optional[str] = None
    timestamp: Optional[str] = None
    reactions: Optional[int] = None
    comments_count: Optional[int] = None
    shares_count: Optional[int] = None
    images: List[str] = field(default_factory=list)
    post_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = _prune(asdict(self))
        if not self.images:
            data.pop("images", None)
        return data


@dataclass
class Page:
    """Public page / profile summary."""

    id: str
    name: str
    url: str
    username: Optional[str] = None
    followers: Optional[int] = None
    likes: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    profile_image: Optional[str] = None
    cover_image: Optional[str] = None
    verified: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _prune(asdict(self))


class SearchType(Enum):
    """Search payload tag (singular form of the requested search type)."""
    POST = "post"
    PAGE = "page"
    GROUP = "group"
    EVENT = "event"
    MARKETPLACE = "marketplace"

    @classmethod
    def from_request(cls, search_type: str) -> "SearchType":
        """Map a plural request type ("posts", "pages", ...) to its tag."""
        singular = {
            "posts": cls.POST,
            "pages": cls.PAGE,
            "groups": cls.GROUP,
            "events": cls.EVENT,
            "marketplace": cls.MARKETPLACE,
        }
        return singular.get(search_type, cls.POST)


@dataclass
class SearchPayload:
    """Items returned for one search, tagged with the entity type."""

    type: SearchType
    items: List[Post] = field(default_factory=list)
    total_count: int = 0
    has_more: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "items": [item.to_dict() for item in self.items],
            "total_count": self.total_count,
            "has_more": self.has_more,
        }


@dataclass
class DetectedBackend:
    """One detector verdict: lower priority is tried first."""

    name: str
    available: bool
    priority: int
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScrapeOptions:
    """Options accepted by every scrape operation."""

    limit: int = 20
    include_comments: bool = False
    timeout: Optional[float] = None
    strategy: Optional[str] = None

    def cache_fields(self) -> Dict[str, Any]:
        """Fields that change what a backend returns (strategy does not)."""
        return {
            "limit": self.limit,
            "include_comments": self.include_comments,
        }


@dataclass
class SearchOptions:
    """Options accepted by every search operation."""

    type: str = "posts"
    limit: int = 10
    timeout: Optional[float] = None
    strategy: Optional[str] = None

    def cache_fields(self) -> Dict[str, Any]:
        return {"type": self.type, "limit": self.limit}


@dataclass
class ResultMetadata:
    """Timing and target information attached to every envelope."""

    elapsed_ms: int
    target: str
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InstructionStep:
    """One action an external browser-capability holder should perform."""

    action: str  # navigate, wait, press_key, scroll, snapshot
    params: Dict[str, Any] = field(default_factory=dict)
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DelegationInstructions:
    """
    Machine-readable plan returned instead of data by the delegated backend.

    After executing ``steps`` the caller feeds the captured markup back
    through ``follow_up`` (the extract-data request).
    """

    target_url: str
    steps: List[InstructionStep] = field(default_factory=list)
    follow_up: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_url": self.target_url,
            "steps": [step.to_dict() for step in self.steps],
            "follow_up": self.follow_up,
        }


class ResultKind(Enum):
    """Tag for result envelopes."""
    SUCCESS = "success"
    FAILURE = "failure"
    DELEGATION_REQUIRED = "delegation_required"


ScrapeData = Union[List[Post], Page, List[Comment]]


def _data_to_json(data: Any) -> Any:
    if data is None:
        return None
    if isinstance(data, list):
        return [item.to_dict() for item in data]
    return data.to_dict()


@dataclass
class ScrapeResult:
    """Envelope returned by every scrape operation."""

    kind: ResultKind
    adapter_used: str
    data: Optional[ScrapeData] = None
    error: Optional[str] = None
    metadata: Optional[ResultMetadata] = None
    comments: Optional[List[Comment]] = None
    instructions: Optional[DelegationInstructions] = None

    @property
    def success(self) -> bool:
        return self.kind is ResultKind.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "kind": self.kind.value,
            "data": _data_to_json(self.data),
            "adapter_used": self.adapter_used,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        if self.comments is not None:
            data["comments"] = [c.to_dict() for c in self.comments]
        if self.instructions is not None:
            data["instructions"] = self.instructions.to_dict()
        return data


@dataclass
class SearchResult:
    """Envelope returned by every search operation."""

    kind: ResultKind
    adapter_used: str
    data: Optional[SearchPayload] = None
    error: Optional[str] = None
    metadata: Optional[ResultMetadata] = None
    instructions: Optional[DelegationInstructions] = None

    @property
    def success(self) -> bool:
        return self.kind is ResultKind.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "kind": self.kind.value,
            "data": self.data.to_dict() if self.data else None,
            "adapter_used": self.adapter_used,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        if self.instructions is not None:
            data["instructions"] = self.instructions.to_dict()
        return data
