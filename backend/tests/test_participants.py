from mac_schedule.stores.device_identity import DEVICE_ID_KEY, DeviceIdentity
from mac_schedule.stores.local_storage import MemoryStorage
from mac_schedule.stores.participant_store import ParticipantTracker, has_participant_tracking


def test_tracking_applies_to_ceremonies():
    assert has_participant_tracking("Cacao Ceremony")
    assert has_participant_tracking("Closing ceremony")
    assert not has_participant_tracking("Aerial Yoga")
    assert not has_participant_tracking(None)


def test_toggle_join_and_leave(storage, identity):
    tracker = ParticipantTracker(storage, identity)

    assert tracker.toggle("Cacao Ceremony") is True
    assert tracker.is_participating("Cacao Ceremony")
    assert tracker.join("Cacao Ceremony") is False
    assert tracker.count("Cacao Ceremony") == 1

    assert tracker.toggle("Cacao Ceremony") is False
    assert tracker.count("Cacao Ceremony") == 0
    assert tracker.all() == {}


def test_devices_are_counted_separately(storage):
    first = ParticipantTracker(storage, DeviceIdentity(MemoryStorage({DEVICE_ID_KEY: "device-a"})))
    second = ParticipantTracker(storage, DeviceIdentity(MemoryStorage({DEVICE_ID_KEY: "device-b"})))

    first.join("Cacao Ceremony")
    second.join("Cacao Ceremony")
    first.leave("Cacao Ceremony")

    assert second.count("Cacao Ceremony") == 1
    assert not first.is_participating("Cacao Ceremony")
