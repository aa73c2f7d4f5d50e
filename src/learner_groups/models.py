"""Core data models for the Learner Groups application."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PerformanceLevel(Enum):
    """Performance level of a learner."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return PERFORMANCE_WEIGHT[self]


PERFORMANCE_WEIGHT: dict[PerformanceLevel, int] = {
    PerformanceLevel.LOW: 1,
    PerformanceLevel.MEDIUM: 2,
    PerformanceLevel.HIGH: 3,
}


class GroupingMode(Enum):
    """How the number of groups is derived."""
    GROUP_SIZE = "groupSize"    # Target number of learners per group
    GROUP_COUNT = "groupCount"  # Target number of groups


class IssueType(Enum):
    """Severity of a grouping issue."""
    WARNING = "warning"    # Soft preference unmet, or placed only by relaxing a rule
    CONFLICT = "conflict"  # Avoidance violated, or learner not placed at all


@dataclass(frozen=True)
class Learner:
    """A learner with a performance level and relationships to peers."""
    id: str
    name: str
    performance: PerformanceLevel = PerformanceLevel.MEDIUM
    prefer: frozenset[str] = frozenset()
    avoid: frozenset[str] = frozenset()
    notes: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable of ids, store as frozenset
        object.__setattr__(self, "prefer", frozenset(self.prefer))
        object.__setattr__(self, "avoid", frozenset(self.avoid))

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "performance": self.performance.value,
            "prefer": sorted(self.prefer),
            "avoid": sorted(self.avoid),
        }
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Learner":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            performance=PerformanceLevel(data.get("performance", "medium")),
            prefer=frozenset(data.get("prefer", [])),
            avoid=frozenset(data.get("avoid", [])),
            notes=data.get("notes"),
        )


@dataclass
class GroupingConfig:
    """Parameters for one grouping run."""
    mode: GroupingMode = GroupingMode.GROUP_SIZE
    group_size: Optional[int] = None   # Used when mode is GROUP_SIZE
    group_count: Optional[int] = None  # Used when mode is GROUP_COUNT
    balance_performance: bool = True

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "group_size": self.group_size,
            "group_count": self.group_count,
            "balance_performance": self.balance_performance,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GroupingConfig":
        return cls(
            mode=GroupingMode(data.get("mode", GroupingMode.GROUP_SIZE.value)),
            group_size=data.get("group_size"),
            group_count=data.get("group_count"),
            balance_performance=data.get("balance_performance", True),
        )


@dataclass
class Issue:
    """A problem found while building groups."""
    type: IssueType
    message: str
    learner_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "message": self.message,
            "learner_ids": list(self.learner_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Issue":
        return cls(
            type=IssueType(data["type"]),
            message=data["message"],
            learner_ids=tuple(data.get("learner_ids", [])),
        )


@dataclass
class Group:
    """A group while it is being filled by the engine."""
    label: str
    capacity: int
    members: list[Learner] = field(default_factory=list)
    score: int = 0  # Sum of member performance weights
    member_ids: set[str] = field(default_factory=set)

    def add(self, learner: Learner) -> None:
        self.members.append(learner)
        self.member_ids.add(learner.id)
        self.score += learner.performance.weight

    def count_matches(self, ids: frozenset[str]) -> int:
        """Number of members whose id is in ``ids``."""
        return len(self.member_ids & ids)


@dataclass
class GroupResult:
    """A finished group."""
    label: str
    members: list[Learner] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.label,
            "members": [m.to_dict() for m in self.members],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GroupResult":
        return cls(
            label=data["id"],
            members=[Learner.from_dict(m) for m in data.get("members", [])],
        )


@dataclass
class GroupingResult:
    """Outcome of a grouping run."""
    groups: list[GroupResult] = field(default_factory=list)
    unassigned: list[Learner] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "unassigned": [s.to_dict() for s in self.unassigned],
            "issues": [i.to_dict() for i in self.issues],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GroupingResult":
        return cls(
            groups=[GroupResult.from_dict(g) for g in data.get("groups", [])],
            unassigned=[Learner.from_dict(s) for s in data.get("unassigned", [])],
            issues=[Issue.from_dict(i) for i in data.get("issues", [])],
        )

    def get_group_of(self, learner_id: str) -> Optional[GroupResult]:
        """Get the group a learner ended up in."""
        for group in self.groups:
            for member in group.members:
                if member.id == learner_id:
                    return group
        return None


@dataclass
class GroupingRequest:
    """Everything the engine needs for one run."""
    learners: list[Learner] = field(default_factory=list)
    config: GroupingConfig = field(default_factory=GroupingConfig)

    def to_dict(self) -> dict:
        return {
            "learners": [s.to_dict() for s in self.learners],
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GroupingRequest":
        return cls(
            learners=[Learner.from_dict(s) for s in data.get("learners", [])],
            config=GroupingConfig.from_dict(data.get("config", {})),
        )


@dataclass
class ClassData:
    """The roster of a class."""
    learners: list[Learner] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"learners": [s.to_dict() for s in self.learners]}

    @classmethod
    def from_dict(cls, data: dict) -> "ClassData":
        return cls(learners=[Learner.from_dict(s) for s in data.get("learners", [])])

    def get_learner_by_id(self, learner_id: str) -> Optional[Learner]:
        """Get a learner by their ID."""
        for learner in self.learners:
            if learner.id == learner_id:
                return learner
        return None


@dataclass
class StoredClass:
    """A named class roster as kept in the class store."""
    id: str
    name: str
    updated_at: str = ""
    data: ClassData = field(default_factory=ClassData)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "updated_at": self.updated_at,
            "data": self.data.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StoredClass":
        return cls(
            id=data["id"],
            name=data["name"],
            updated_at=data.get("updated_at", ""),
            data=ClassData.from_dict(data.get("data", {})),
        )
