"""
Finds target groups by display name, creating them when missing
"""

import logging
from typing import Dict, Optional

from errors import ConfigurationError


logger = logging.getLogger(__name__)


def mail_nickname_for(display_name: str) -> str:
    return display_name.replace(" ", "_")


class GroupResolver:
    """Resolves each target group name to a group id once per run."""

    def __init__(self, client, dry_run: bool = False):
        self.client = client
        self.dry_run = dry_run
        self._resolved: Dict[str, str] = {}

    async def resolve_or_create(self, display_name: str) -> Optional[str]:
        """
        Return the id of the group named display_name.

        A missing group is created as a security group. Duplicate names are a
        ConfigurationError since there is no safe way to pick one. In dry run mode a
        missing group is not created and None is returned.
        """
        if display_name in self._resolved:
            return self._resolved[display_name]

        group_ids = await self.client.find_groups_by_name(display_name)

        if len(group_ids) > 1:
            raise ConfigurationError(
                f"Found {len(group_ids)} groups named '{display_name}' ({', '.join(group_ids)}), refusing to guess"
            )

        if group_ids:
            group_id = group_ids[0]
            logger.debug(f"Resolved group '{display_name}' to {group_id}")
        elif self.dry_run:
            logger.info(f"[DRY RUN] Would create group '{display_name}'")
            return None
        else:
            logger.info(f"Group '{display_name}' not found, creating it")
            group_id = await self.client.create_group(display_name, mail_nickname_for(display_name))

        self._resolved[display_name] = group_id
        return group_id
