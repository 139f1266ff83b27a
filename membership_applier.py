"""
Applies a membership diff to a group through batched, sequential mutation calls
"""

import logging
from typing import Iterable, Iterator, List, Optional

from config import MAX_ADD_BATCH_SIZE
from errors import ConfigurationError, MutationError
from models import ApplyResult, MembershipDiff


logger = logging.getLogger(__name__)


def chunked(items: Iterable[str], size: int) -> Iterator[List[str]]:
    """Split items into consecutive lists of at most size elements."""
    batch: List[str] = []
    for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


class MembershipApplier:
    """
    Writes additions in batches, then removals one by one, for a single group.

    Calls are awaited strictly one after another so two writes to the same
    group's member collection never overlap. A failed call is recorded and the
    remaining calls still run; the next sync re-diffs against the live group and
    picks up whatever is still outstanding.
    """

    def __init__(self, client, batch_size: int = MAX_ADD_BATCH_SIZE, dry_run: bool = False):
        if batch_size < 1 or batch_size > MAX_ADD_BATCH_SIZE:
            raise ConfigurationError(f"Batch size must be between 1 and {MAX_ADD_BATCH_SIZE}, got {batch_size}")
        self.client = client
        self.batch_size = batch_size
        self.dry_run = dry_run

    async def apply(self, group_id: Optional[str], diff: MembershipDiff) -> ApplyResult:
        result = ApplyResult()

        if self.dry_run:
            for principal_id in sorted(diff.to_add):
                logger.info(f"[DRY RUN] Would add: {principal_id} to group {group_id}")
            for principal_id in sorted(diff.to_remove):
                logger.info(f"[DRY RUN] Would remove: {principal_id} from group {group_id}")
            return result

        if group_id is None:
            raise ConfigurationError("Cannot apply membership changes to an unresolved group")

        # Additions first, so nobody is briefly in neither state
        for batch in chunked(sorted(diff.to_add), self.batch_size):
            try:
                await self.client.add_group_members(group_id, batch)
            except MutationError as e:
                logger.error(f"Failed to add batch of {len(batch)} to group {group_id}: {e}")
                result.failures.extend((principal_id, e) for principal_id in batch)
                continue

            result.added += len(batch)
            logger.info(f"Added {len(batch)} members to group {group_id}")

        for principal_id in sorted(diff.to_remove):
            try:
                await self.client.remove_group_member(group_id, principal_id)
            except MutationError as e:
                logger.error(f"Failed to remove {principal_id} from group {group_id}: {e}")
                result.failures.append((principal_id, e))
                continue

            result.removed += 1
            logger.info(f"Removed member {principal_id} from group {group_id}")

        return result
