"""
Exception types raised by the role group sync
"""


class RoleGroupSyncError(Exception):
    """Base class for all sync errors."""


class TransientFetchError(RoleGroupSyncError):
    """Reading role assignments, objects or group members failed."""


class ConfigurationError(RoleGroupSyncError):
    """Settings or directory state make it unsafe to continue (e.g. duplicate group names)."""


class MutationError(RoleGroupSyncError):
    """A single add or remove call against a group failed."""


class AuthorizationError(RoleGroupSyncError):
    """The app registration is not allowed to read or write what the sync needs."""
