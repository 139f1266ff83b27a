"""
Data model for the role group sync, including the DiffSync membership model
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from diffsync import DiffSyncModel


class PrincipalType(Enum):
    USER = "user"
    GROUP = "group"
    OTHER = "other"


@dataclass(frozen=True)
class RoleAssignment:
    """A directory role assignment as read from the directory."""
    principal_id: str
    is_privileged: bool
    role_name: str = ""


@dataclass(frozen=True)
class Principal:
    id: str
    type: PrincipalType


@dataclass
class TargetGroup:
    name: str
    id: Optional[str] = None
    current_members: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class MembershipDiff:
    """Changes needed to bring a group's members in line with its desired set."""
    to_add: FrozenSet[str] = frozenset()
    to_remove: FrozenSet[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass
class ApplyResult:
    added: int = 0
    removed: int = 0
    failures: List[Tuple[str, Exception]] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)


@dataclass
class StageReport:
    """
    Outcome of one reconciliation pass, handed to the reporter.
    ``error`` is set when the pass was aborted before or during the apply phase.
    """
    group_name: str
    existing_count: int = 0
    to_add_count: int = 0
    to_remove_count: int = 0
    result: Optional[ApplyResult] = None
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None or (self.result is not None and self.result.partial)


@dataclass
class SyncRunResult:
    desired_sets: Dict[str, Set[str]] = field(default_factory=dict)
    reports: List[StageReport] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return any(report.failed for report in self.reports)


class GroupMember(DiffSyncModel):
    """
    DiffSync model representing one principal's membership of a target group.
    Memberships carry no attributes, so a diff only ever creates or deletes.
    """
    _modelname = "member"
    _identifiers = ("group_name", "principal_id")
    _attributes = ()

    group_name: str
    principal_id: str
