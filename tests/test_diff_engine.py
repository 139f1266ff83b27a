from diff_engine import MembershipSetAdapter, compute_diff


def test_adds_missing_and_removes_extra():
    diff = compute_diff({"alice", "bob", "carol"}, {"bob", "dave"}, "admins")

    assert diff.to_add == {"alice", "carol"}
    assert diff.to_remove == {"dave"}


def test_diff_is_disjoint_and_bounded_by_inputs():
    cases = [
        ({"a", "b"}, {"b", "c"}),
        ({"a"}, set()),
        (set(), {"a", "b"}),
        ({"a", "b", "c"}, {"a", "b", "c"}),
        ({"x", "y"}, {"z"}),
    ]
    for desired, current in cases:
        diff = compute_diff(desired, current)
        assert diff.to_add == desired - current
        assert diff.to_remove == current - desired
        assert not diff.to_add & diff.to_remove
        assert diff.to_add <= desired
        assert diff.to_remove <= current


def test_empty_desired_set_removes_everyone():
    """No role holders left is a real answer and empties the group."""
    diff = compute_diff(set(), {"alice", "bob"})

    assert diff.to_add == set()
    assert diff.to_remove == {"alice", "bob"}


def test_none_is_treated_as_empty():
    assert compute_diff(None, None).is_empty
    assert compute_diff(None, {"alice"}).to_remove == {"alice"}
    assert compute_diff({"alice"}, None).to_add == {"alice"}


def test_identical_sets_need_no_changes():
    diff = compute_diff({"alice", "bob"}, ["bob", "alice"])

    assert diff.is_empty


def test_adapter_loads_one_model_per_unique_principal():
    adapter = MembershipSetAdapter("admins", ["alice", "bob", "alice"], name="desired")
    adapter.load()

    members = adapter.get_all("member")
    assert sorted(m.principal_id for m in members) == ["alice", "bob"]
    assert all(m.group_name == "admins" for m in members)
