"""Data models for books and query specs."""
from dataclasses import dataclass, field, replace
from typing import Optional, List, Dict, Any, Tuple


@dataclass
class Book:
    """Normalized book document."""
    title: str
    author: str
    genre: str
    published_year: int
    price: float
    pages: int
    in_stock: bool
    publisher: str
    id: Optional[str] = None

    @property
    def availability(self) -> str:
        """Human-readable stock status."""
        return "In stock" if self.in_stock else "Out of stock"


@dataclass(frozen=True)
class Pagination:
    """Limit/skip pair for page-based pagination."""
    limit: int
    skip: int

    def as_dict(self) -> Dict[str, int]:
        return {"limit": self.limit, "skip": self.skip}


@dataclass(frozen=True)
class QuerySpec:
    """
    A find request: filter plus optional projection, sort and pagination.

    ``limit == 0`` means no limit, matching pymongo.
    """
    filter: Dict[str, Any] = field(default_factory=dict)
    projection: Optional[Dict[str, int]] = None
    sort: Tuple[Tuple[str, int], ...] = ()
    limit: int = 0
    skip: int = 0

    def with_changes(self, **changes) -> "QuerySpec":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_command(self, collection_name: str) -> Dict[str, Any]:
        """Render as a ``find`` database command."""
        command: Dict[str, Any] = {"find": collection_name, "filter": dict(self.filter)}
        if self.projection is not None:
            command["projection"] = dict(self.projection)
        if self.sort:
            command["sort"] = dict(self.sort)
        if self.skip:
            command["skip"] = self.skip
        if self.limit:
            command["limit"] = self.limit
        return command


@dataclass(frozen=True)
class UpdateSpec:
    """An updateOne (``many=False``) or updateMany (``many=True``) request."""
    filter: Dict[str, Any]
    update: Dict[str, Any]
    many: bool = False

    @property
    def operation(self) -> str:
        return "updateMany" if self.many else "updateOne"


@dataclass(frozen=True)
class DeleteSpec:
    """A deleteOne request."""
    filter: Dict[str, Any]


@dataclass(frozen=True)
class CountSpec:
    """A countDocuments request."""
    filter: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DistinctSpec:
    """A distinct request."""
    key: str
    filter: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AggregationPipeline:
    """Named, ordered sequence of aggregation stages."""
    name: str
    stages: Tuple[Dict[str, Any], ...]

    def stage_names(self) -> List[str]:
        """Stage operators in pipeline order, e.g. ``['$group', '$sort']``."""
        return [next(iter(stage)) for stage in self.stages]

    def to_list(self) -> List[Dict[str, Any]]:
        """Stages as the list pymongo's ``aggregate`` expects."""
        return [dict(stage) for stage in self.stages]


@dataclass(frozen=True)
class IndexSpec:
    """Index definition; key order matters for compound indexes."""
    keys: Tuple[Tuple[str, int], ...]
    name: Optional[str] = None

    @property
    def is_compound(self) -> bool:
        return len(self.keys) > 1

    @property
    def default_name(self) -> str:
        """Name MongoDB generates when none is given (``author_1_published_year_1``)."""
        return self.name or "_".join(f"{key}_{direction}" for key, direction in self.keys)


@dataclass(frozen=True)
class ExplainSpec:
    """An explain request wrapping a find."""
    query: QuerySpec
    verbosity: str = "executionStats"
