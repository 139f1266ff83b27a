"""
Microsoft Graph adapter for the role group sync

Wraps the Graph sessions. Every component receives an instance of
GraphDirectoryClient (or anything with the same coroutine methods) explicitly.
Role assignments are read from the beta endpoint, the only one that serves
a role definition's isPrivileged flag; everything else uses v1.0.
"""

import logging
from typing import List, Optional, Tuple

import httpx
from azure.core.exceptions import ClientAuthenticationError
from azure.identity.aio import ClientSecretCredential
from kiota_abstractions.api_error import APIError
from kiota_abstractions.base_request_configuration import RequestConfiguration
from kiota_authentication_azure.azure_identity_authentication_provider import AzureIdentityAuthenticationProvider
from msgraph import GraphServiceClient
from msgraph.graph_request_adapter import GraphRequestAdapter
from msgraph.generated.groups.groups_request_builder import GroupsRequestBuilder
from msgraph.generated.groups.item.members.members_request_builder import MembersRequestBuilder
from msgraph.generated.models.group import Group
from msgraph_beta import GraphServiceClient as BetaGraphServiceClient
from msgraph_beta.graph_request_adapter import GraphRequestAdapter as BetaGraphRequestAdapter
from msgraph_beta.generated.role_management.directory.role_assignments.role_assignments_request_builder import (
    RoleAssignmentsRequestBuilder
)
from msgraph_core import APIVersion, GraphClientFactory

from config import SyncConfig
from errors import AuthorizationError, MutationError, TransientFetchError
from models import RoleAssignment


logger = logging.getLogger(__name__)

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]
DIRECTORY_OBJECT_URL = "https://graph.microsoft.com/v1.0/directoryObjects/{}"

GRAPH_ERRORS = (APIError, ClientAuthenticationError, httpx.HTTPError)


def _status_code(error: Exception) -> Optional[int]:
    return getattr(error, "response_status_code", None)


def _translate_error(error: Exception, message: str, write: bool = False) -> Exception:
    """Map an SDK or transport error onto the sync's error taxonomy."""
    if isinstance(error, ClientAuthenticationError) or _status_code(error) in (401, 403):
        return AuthorizationError(f"{message}: {error}")
    if write:
        return MutationError(f"{message}: {error}")
    return TransientFetchError(f"{message}: {error}")


def _escape_odata(value: str) -> str:
    return value.replace("'", "''")


class GraphDirectoryClient:
    """
    Directory session for Microsoft Entra ID.
    Reads role assignments, directory objects and groups; writes group membership.
    """

    def __init__(self, config: SyncConfig):
        self.config = config
        self.client: Optional[GraphServiceClient] = None
        self.beta_client: Optional[BetaGraphServiceClient] = None
        self.credential: Optional[ClientSecretCredential] = None
        self.http_clients: List[httpx.AsyncClient] = []

    async def connect(self):
        """Create the credential, the HTTP transports and both Graph clients."""
        logger.info(f"Connecting to Microsoft Graph for tenant {self.config.tenant_id}")

        self.credential = ClientSecretCredential(
            tenant_id=self.config.tenant_id,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
        )
        auth_provider = AzureIdentityAuthenticationProvider(self.credential, scopes=GRAPH_SCOPES)

        http_client = GraphClientFactory.create_with_default_middleware(api_version=APIVersion.v1)
        beta_http_client = GraphClientFactory.create_with_default_middleware(api_version=APIVersion.beta)
        self.http_clients = [http_client, beta_http_client]

        self.client = GraphServiceClient(request_adapter=GraphRequestAdapter(auth_provider, client=http_client))
        self.beta_client = BetaGraphServiceClient(
            request_adapter=BetaGraphRequestAdapter(auth_provider, client=beta_http_client)
        )
        logger.info("Microsoft Graph clients ready")

    async def list_role_assignments(self, privileged: bool) -> List[RoleAssignment]:
        """Load every directory role assignment whose role definition matches the privilege flag."""
        query_parameters = RoleAssignmentsRequestBuilder.RoleAssignmentsRequestBuilderGetQueryParameters(
            expand=["roleDefinition($select=id,displayName,isPrivileged)"],
            select=["id", "principalId", "roleDefinitionId"],
        )
        request_configuration = RequestConfiguration(query_parameters=query_parameters)
        builder = self.beta_client.role_management.directory.role_assignments

        assignments: List[RoleAssignment] = []
        try:
            response = await builder.get(request_configuration=request_configuration)
            while response is not None:
                for item in response.value or []:
                    definition = item.role_definition
                    if definition is None or not item.principal_id:
                        continue

                    # Roles without a classification are treated as non-privileged
                    is_privileged = bool(definition.is_privileged)
                    if is_privileged != privileged:
                        continue

                    assignments.append(RoleAssignment(
                        principal_id=item.principal_id,
                        is_privileged=is_privileged,
                        role_name=definition.display_name or "",
                    ))

                if not response.odata_next_link:
                    break
                logger.debug(f"Fetching next page of role assignments (kept {len(assignments)} so far)")
                response = await builder.with_url(response.odata_next_link).get()
        except GRAPH_ERRORS as e:
            raise _translate_error(e, "Failed to list role assignments")

        kind = "privileged" if privileged else "non-privileged"
        logger.info(f"Loaded {len(assignments)} {kind} role assignments")
        return assignments

    async def get_object_type(self, object_id: str) -> Optional[str]:
        """Return the @odata.type of a directory object, or None if it no longer exists."""
        try:
            directory_object = await self.client.directory_objects.by_directory_object_id(object_id).get()
        except GRAPH_ERRORS as e:
            if _status_code(e) == 404:
                return None
            raise _translate_error(e, f"Failed to resolve directory object {object_id}")

        if directory_object is None:
            return None
        return directory_object.odata_type

    async def find_groups_by_name(self, display_name: str) -> List[str]:
        """Return the ids of all groups the directory considers named display_name."""
        query_parameters = GroupsRequestBuilder.GroupsRequestBuilderGetQueryParameters(
            filter=f"displayName eq '{_escape_odata(display_name)}'",
            select=["id", "displayName"],
        )
        request_configuration = RequestConfiguration(query_parameters=query_parameters)

        try:
            response = await self.client.groups.get(request_configuration=request_configuration)
        except GRAPH_ERRORS as e:
            raise _translate_error(e, f"Failed to look up group '{display_name}'")

        groups = response.value if response and response.value else []
        return [group.id for group in groups]

    async def create_group(self, display_name: str, mail_nickname: str) -> str:
        """Create a security-enabled, mail-disabled group and return its id."""
        body = Group(
            display_name=display_name,
            mail_enabled=False,
            security_enabled=True,
            mail_nickname=mail_nickname,
        )

        try:
            group = await self.client.groups.post(body)
        except GRAPH_ERRORS as e:
            raise _translate_error(e, f"Failed to create group '{display_name}'", write=True)

        logger.info(f"Created group '{display_name}' ({group.id})")
        return group.id

    async def list_group_members_page(
        self, group_id: str, page_size: int, cursor: Optional[str] = None
    ) -> Tuple[List[str], Optional[str]]:
        """Read one page of member ids. Returns the ids and the cursor for the next page, if any."""
        members = self.client.groups.by_group_id(group_id).members

        try:
            if cursor:
                response = await members.with_url(cursor).get()
            else:
                query_parameters = MembersRequestBuilder.MembersRequestBuilderGetQueryParameters(
                    select=["id"],
                    top=page_size,
                )
                response = await members.get(
                    request_configuration=RequestConfiguration(query_parameters=query_parameters)
                )
        except GRAPH_ERRORS as e:
            raise _translate_error(e, f"Failed to read members of group {group_id}")

        if response is None:
            return [], None

        member_ids = [member.id for member in response.value or [] if member.id]
        return member_ids, response.odata_next_link

    async def add_group_members(self, group_id: str, member_ids: List[str]):
        """Bind all member_ids to the group in a single PATCH."""
        body = Group()
        body.additional_data = {
            "members@odata.bind": [DIRECTORY_OBJECT_URL.format(member_id) for member_id in member_ids]
        }

        try:
            await self.client.groups.by_group_id(group_id).patch(body)
        except GRAPH_ERRORS as e:
            raise _translate_error(e, f"Failed to add {len(member_ids)} members to group {group_id}", write=True)

    async def remove_group_member(self, group_id: str, member_id: str):
        """Remove one member reference from the group."""
        try:
            await self.client.groups.by_group_id(group_id).members.by_directory_object_id(member_id).ref.delete()
        except GRAPH_ERRORS as e:
            raise _translate_error(e, f"Failed to remove {member_id} from group {group_id}", write=True)

    async def close(self):
        """Close the HTTP transports and the credential."""
        for http_client in self.http_clients:
            try:
                await http_client.aclose()
            except Exception as e:
                logger.warning(f"Error closing Graph HTTP client: {e}")
        self.http_clients = []

        if self.credential:
            try:
                await self.credential.close()
                logger.debug("Graph credential closed")
            except Exception as e:
                logger.warning(f"Error closing Graph credential: {e}")
