"""
Membership diff between a desired set and a group's current members, using diffsync
"""

import logging
from typing import Iterable, Optional, Set

from diffsync import Adapter

from models import GroupMember, MembershipDiff


logger = logging.getLogger(__name__)


class MembershipSetAdapter(Adapter):
    """
    DiffSync adapter over a plain set of principal ids for one group.
    Used for both sides of the diff: the desired set and the current members.
    """

    member = GroupMember
    top_level = ["member"]

    def __init__(self, group_name: str, principal_ids: Optional[Iterable[str]], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.group_name = group_name
        self.principal_ids: Set[str] = set(principal_ids or ())

    def load(self):
        for principal_id in sorted(self.principal_ids):
            self.add(GroupMember(group_name=self.group_name, principal_id=principal_id))


def compute_diff(
    desired: Optional[Iterable[str]],
    current: Optional[Iterable[str]],
    group_name: str = "",
) -> MembershipDiff:
    """
    Compute which principals to add to and remove from a group.

    None on either side means an empty set. Callers must not pass None for a
    desired set they failed to compute; they should stop before getting here.
    """
    desired_adapter = MembershipSetAdapter(group_name, desired, name="desired")
    current_adapter = MembershipSetAdapter(group_name, current, name="current")
    desired_adapter.load()
    current_adapter.load()

    diff = current_adapter.diff_from(desired_adapter)

    to_add = set()
    to_remove = set()
    for element in diff.get_children():
        principal_id = element.keys["principal_id"]
        if element.action == "create":
            to_add.add(principal_id)
        elif element.action == "delete":
            to_remove.add(principal_id)

    logger.debug(f"Diff for '{group_name}': {len(to_add)} to add, {len(to_remove)} to remove")
    return MembershipDiff(to_add=frozenset(to_add), to_remove=frozenset(to_remove))
