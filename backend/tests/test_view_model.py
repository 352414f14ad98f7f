from conftest import make_snapshot
from mac_schedule.schemas import Session
from mac_schedule.services.snapshot_reader import RemoteBookingSnapshot, RemoteSessionBooking
from mac_schedule.services.view_model import build_session_view, derive_capacity_state, union_names


def test_spots_left_never_negative(store):
    snapshot = make_snapshot(s1=(2, ["Alice", "Bob", "Carol", "Dave"]))

    state = derive_capacity_state("s1", snapshot, store)

    assert state.booking_count == 4
    assert state.spots_left == 0
    assert state.is_full is True


def test_local_names_are_counted_once(store):
    store.set("s1", ["Alice", "Erin"])
    snapshot = make_snapshot(s1=(5, ["Alice", "Bob"]))

    state = derive_capacity_state("s1", snapshot, store)

    assert state.booked_names == ["Alice", "Bob", "Erin"]
    assert state.booking_count == 3
    assert state.spots_left == 2
    assert state.is_booked_by_this_device is True


def test_count_only_rows_are_respected(store):
    snapshot = RemoteBookingSnapshot(
        sessions={"s1": RemoteSessionBooking("s1", "Acro", capacity=10, booked_names=["Alice"], booking_count=4)}
    )

    assert derive_capacity_state("s1", snapshot, store).booking_count == 4


def test_without_snapshot_uses_local_view_and_metadata_capacity(store):
    store.set("s1", ["Alice"])

    state = derive_capacity_state("s1", None, store, capacity=3)

    assert (state.booking_count, state.capacity, state.spots_left) == (1, 3, 2)


def test_unlimited_session_has_no_spots(store):
    state = derive_capacity_state("open-jam", make_snapshot(), store)

    assert state.capacity is None
    assert state.spots_left is None
    assert state.is_full is False


def test_session_view_only_has_booking_block_for_capacity_sessions(store):
    snapshot = make_snapshot(s1=(4, ["Alice"]))

    limited = build_session_view(Session(id="s1", title="Aerial Yoga"), snapshot, store)
    unlimited = build_session_view(Session(id="s2", title="Pool Jam"), snapshot, store)

    assert limited.booking is not None
    assert limited.booking.spots_left == 3
    assert unlimited.booking is None


def test_union_names_preserves_first_seen_order():
    assert union_names(["Carol", "Dave"], ["Dave", "Alice"], ["Carol"]) == ["Carol", "Dave", "Alice"]
