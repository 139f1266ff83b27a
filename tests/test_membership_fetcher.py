import pytest

from errors import TransientFetchError
from membership_fetcher import MembershipFetcher


async def test_fetch_follows_cursor_until_exhausted(directory):
    group_id = directory.add_group("ops", members=["a", "b", "c", "d", "e"])

    members = await MembershipFetcher(directory, page_size=2).fetch_members(group_id)

    assert members == {"a", "b", "c", "d", "e"}
    cursors = [call[2] for call in directory.calls_named("list_group_members_page")]
    assert cursors == [None, "2", "4"]


async def test_empty_group_yields_empty_set(directory):
    group_id = directory.add_group("ops")

    members = await MembershipFetcher(directory, page_size=2).fetch_members(group_id)

    assert members == set()
    assert len(directory.calls_named("list_group_members_page")) == 1


async def test_duplicate_ids_across_pages_collapse(directory):
    pages = {None: (["a", "b"], "next"), "next": (["b", "c"], None)}

    async def paged(group_id, page_size, cursor=None):
        return pages[cursor]

    directory.list_group_members_page = paged

    assert await MembershipFetcher(directory).fetch_members("ops") == {"a", "b", "c"}


async def test_page_error_propagates_without_partial_result(directory):
    group_id = directory.add_group("ops", members=["a", "b", "c"])
    directory.fail_member_reads.add(group_id)

    with pytest.raises(TransientFetchError):
        await MembershipFetcher(directory, page_size=2).fetch_members(group_id)


async def test_iteration_restarts_from_first_page(directory):
    group_id = directory.add_group("ops", members=["a", "b", "c"])
    fetcher = MembershipFetcher(directory, page_size=2)

    first = [page async for page in fetcher.iter_pages(group_id)]
    second = [page async for page in fetcher.iter_pages(group_id)]

    assert first == second == [["a", "b"], ["c"]]
