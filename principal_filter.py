"""
Classifies role holders so only users and groups end up as sync members
"""

import logging
from typing import Dict, Iterable, Optional, Set

from models import Principal, PrincipalType


logger = logging.getLogger(__name__)

ODATA_TYPES = {
    "#microsoft.graph.user": PrincipalType.USER,
    "#microsoft.graph.group": PrincipalType.GROUP,
}


def principal_type_for(odata_type: Optional[str]) -> PrincipalType:
    return ODATA_TYPES.get((odata_type or "").lower(), PrincipalType.OTHER)


class PrincipalFilter:
    """
    Resolves directory object ids to principals.
    Service principals, applications and managed identities are excluded. Results
    are cached for the lifetime of the filter, which is one sync run.
    """

    def __init__(self, client):
        self.client = client
        self._cache: Dict[str, Optional[Principal]] = {}

    async def classify(self, object_id: str) -> Optional[Principal]:
        """Return the principal for object_id, or None if it is not eligible for membership."""
        if object_id in self._cache:
            return self._cache[object_id]

        odata_type = await self.client.get_object_type(object_id)
        if odata_type is None:
            logger.warning(f"Directory object {object_id} no longer exists, excluding it")
            principal = None
        else:
            principal_type = principal_type_for(odata_type)
            if principal_type is PrincipalType.OTHER:
                logger.debug(f"Excluding {object_id} ({odata_type})")
                principal = None
            else:
                principal = Principal(id=object_id, type=principal_type)

        self._cache[object_id] = principal
        return principal

    async def filter_principals(self, object_ids: Iterable[str]) -> Set[str]:
        """Deduplicate object_ids and keep only the users and groups."""
        unique_ids = {object_id for object_id in object_ids if object_id}
        eligible: Set[str] = set()

        for object_id in sorted(unique_ids):
            principal = await self.classify(object_id)
            if principal is not None:
                eligible.add(principal.id)

        excluded = len(unique_ids) - len(eligible)
        logger.info(f"Kept {len(eligible)} of {len(unique_ids)} principals ({excluded} excluded)")
        return eligible
