"""
Reads the complete current membership of a group
"""

import logging
from typing import AsyncIterator, List, Set

from config import MAX_PAGE_SIZE


logger = logging.getLogger(__name__)


class MembershipFetcher:
    """Pages through a group's members using the server's continuation cursor."""

    def __init__(self, client, page_size: int = MAX_PAGE_SIZE):
        self.client = client
        self.page_size = page_size

    async def iter_pages(self, group_id: str) -> AsyncIterator[List[str]]:
        """
        Yield pages of member ids, starting from the first page every time.
        Errors are raised, never swallowed, so a caller cannot mistake a broken
        read for a short membership list.
        """
        cursor = None
        page_count = 0

        while True:
            member_ids, cursor = await self.client.list_group_members_page(group_id, self.page_size, cursor)
            page_count += 1
            logger.debug(f"Read page {page_count} of group {group_id} ({len(member_ids)} members)")
            yield member_ids

            if not cursor:
                break

    async def fetch_members(self, group_id: str) -> Set[str]:
        """Return the set of all member ids of the group."""
        members: Set[str] = set()
        async for page in self.iter_pages(group_id):
            members.update(page)

        logger.info(f"Group {group_id} has {len(members)} members")
        return members
