import pytest

from errors import TransientFetchError
from models import Principal, PrincipalType
from principal_filter import PrincipalFilter, principal_type_for

from fakes import GROUP, SERVICE_PRINCIPAL, USER


def test_principal_type_mapping():
    assert principal_type_for(USER) is PrincipalType.USER
    assert principal_type_for(GROUP) is PrincipalType.GROUP
    assert principal_type_for(SERVICE_PRINCIPAL) is PrincipalType.OTHER
    assert principal_type_for("#microsoft.graph.application") is PrincipalType.OTHER
    assert principal_type_for(None) is PrincipalType.OTHER


async def test_classify_users_and_groups(directory):
    directory.add_object("alice", USER)
    directory.add_object("ops", GROUP)
    directory.add_object("backup-app", SERVICE_PRINCIPAL)
    principal_filter = PrincipalFilter(directory)

    assert await principal_filter.classify("alice") == Principal("alice", PrincipalType.USER)
    assert await principal_filter.classify("ops") == Principal("ops", PrincipalType.GROUP)
    assert await principal_filter.classify("backup-app") is None


async def test_vanished_object_is_excluded(directory):
    principal_filter = PrincipalFilter(directory)

    assert await principal_filter.classify("deleted-user") is None


async def test_filter_keeps_only_users_and_groups(directory):
    directory.add_object("alice", USER)
    directory.add_object("ops", GROUP)
    directory.add_object("backup-app", SERVICE_PRINCIPAL)

    eligible = await PrincipalFilter(directory).filter_principals(["alice", "ops", "backup-app", "gone"])

    assert eligible == {"alice", "ops"}


async def test_filter_deduplicates_lookups(directory):
    directory.add_object("alice", USER)
    directory.add_object("bob", USER)
    principal_filter = PrincipalFilter(directory)

    await principal_filter.filter_principals(["alice", "bob", "alice", "alice", ""])
    await principal_filter.filter_principals(["bob"])

    looked_up = [call[1] for call in directory.calls_named("get_object_type")]
    assert sorted(looked_up) == ["alice", "bob"]


async def test_lookup_errors_propagate(directory):
    async def broken(object_id):
        raise TransientFetchError("timeout")

    directory.get_object_type = broken

    with pytest.raises(TransientFetchError):
        await PrincipalFilter(directory).filter_principals(["alice"])
