"""Data classes for family tree entities and the visual graph built from them."""

from dataclasses import dataclass, field
from enum import Enum


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class LayoutDirection(str, Enum):
    TB = "TB"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @property
    def is_horizontal(self) -> bool:
        return self in (LayoutDirection.LR, LayoutDirection.RL)


class NodeKind(str, Enum):
    PERSON = "person"
    COUPLE = "couple"


class EdgeType(str, Enum):
    PARENT = "parent"
    SPOUSE = "spouse"


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    gender: Gender = Gender.MALE
    birth_date: str | None = None
    death_date: str | None = None
    spouse_id: str | None = None
    parent_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class FamilySettings:
    direction: LayoutDirection = LayoutDirection.TB


@dataclass(frozen=True)
class FamilyDataset:
    members: tuple[Person, ...] = ()
    settings: FamilySettings = field(default_factory=FamilySettings)

    def get(self, person_id: str) -> Person | None:
        for person in self.members:
            if person.id == person_id:
                return person
        return None


@dataclass(frozen=True)
class CoupleKey:
    """Explicit pair of person ids identifying a couple node."""

    first: str
    second: str

    @property
    def node_id(self) -> str:
        return f"couple-{self.first}-{self.second}"

    def person_ids(self) -> tuple[str, str]:
        return (self.first, self.second)


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class GraphNode:
    id: str
    kind: NodeKind
    persons: tuple[Person, ...]
    couple: CoupleKey | None = None
    position: Position = Position()
    is_collapsed: bool = False
    has_child_connection: bool = False
    has_parent_connection: bool = False
    parent_connections: frozenset[str] = frozenset()  # person ids with an incoming edge

    @property
    def person_ids(self) -> tuple[str, ...]:
        return tuple(p.id for p in self.persons)


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    child_id: str | None = None
    source_handle: str | None = "children"
    target_handle: str | None = "parents"
    edge_type: EdgeType = EdgeType.PARENT


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class LayoutResult:
    nodes: list[GraphNode]
    success: bool
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    execution_time: float = 0.0  # milliseconds
