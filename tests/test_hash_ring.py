from hashring.hash_ring import HashRing
from hashring.membership import MembershipTable
from hashring.node import Node

A, B, C = Node("a"), Node("b"), Node("c")


def make_ring():
    ring = HashRing()
    ring.insert(10, A)
    ring.insert(20, B)
    ring.insert(30, C)
    return ring


def test_empty_ring_resolves_to_none():
    assert HashRing().resolve(0) is None
    assert HashRing().resolve(2 ** 64 - 1) is None


def test_resolve_picks_ceiling_position():
    ring = make_ring()
    assert ring.resolve(0) == A
    assert ring.resolve(10) == A
    assert ring.resolve(11) == B
    assert ring.resolve(20) == B
    assert ring.resolve(25) == C


def test_resolve_wraps_past_the_largest_position():
    ring = make_ring()
    assert ring.resolve(31) == A
    assert ring.resolve(2 ** 64 - 1) == A


def test_remove_hands_range_to_successor():
    ring = make_ring()
    ring.remove(20)
    assert len(ring) == 2
    assert ring.resolve(15) == C
    assert 20 not in ring


def test_remove_missing_position_is_noop():
    ring = make_ring()
    ring.remove(999)
    assert ring.positions() == [10, 20, 30]


def test_insert_at_existing_position_overwrites_owner():
    ring = make_ring()
    ring.insert(20, C)
    assert len(ring) == 3
    assert ring.owner_at(20) == C
    assert ring.resolve(15) == C


def test_positions_stay_sorted():
    ring = HashRing()
    for position in [50, 5, 40, 15, 99, 1]:
        ring.insert(position, A)
    assert ring.positions() == [1, 5, 15, 40, 50, 99]


def test_snapshot_and_clear():
    ring = make_ring()
    assert ring.snapshot() == {10: "a", 20: "b", 30: "c"}
    ring.clear()
    assert len(ring) == 0
    assert ring.resolve(10) is None


def test_membership_table_rejects_duplicate_ids():
    table = MembershipTable()
    assert table.add(Node("a", "h1", 1))
    assert not table.add(Node("a", "h2", 2))
    assert table.size() == 1
    assert table.get("a").host == "h1"
    assert table.remove("a").id == "a"
    assert table.remove("a") is None
    assert "a" not in table


def test_node_identity_is_by_id():
    assert Node("a", "h1", 1) == Node("a", "h2", 2)
    assert hash(Node("a", "h1", 1)) == hash(Node("a", "h2", 2))
    assert Node("a") != Node("b")
    assert Node("a", "10.0.0.1", 11211).address == "10.0.0.1:11211"
    assert Node("a").address == "localhost:8080"
