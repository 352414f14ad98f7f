import httpx
import pytest

from mac_schedule.services.snapshot_reader import RemoteSnapshotReader, parse_bookings_csv
from mac_schedule.utils.csv_records import join_names, split_names

URL = "https://sheets.example.test/export?format=csv&gid=1652982192"

BOOKINGS_CSV = (
    "Session ID,Session Name,Capacity,Booked Names\n"
    "thu-0700-aerial-yoga,Aerial Yoga,18,\"Alice, Bob\"\n"
    "s1,Acro Basics,5,\"Alice, Jr., Bob\"\n"
    "s2,Washing Machines,5,\"\"\"Alice, Jr.\"\", Bob\"\n"
    "s3,\"Acro\nJam\",4,Dana\n"
    "s4,Only two\n"
    "s5,No capacity,,Eve\n"
    "s6,Zero capacity,0,Frank\n"
    "s7,Bad capacity,lots,Gina\n"
    ",Missing id,3,Hank\n"
    "s8,Nobody yet,6,\n"
)


def make_reader(handler) -> RemoteSnapshotReader:
    return RemoteSnapshotReader(URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_parse_keeps_only_rows_with_id_and_positive_capacity():
    snapshot = parse_bookings_csv(BOOKINGS_CSV)

    assert snapshot is not None
    assert set(snapshot.sessions) == {"thu-0700-aerial-yoga", "s1", "s2", "s3", "s8"}
    yoga = snapshot.get("thu-0700-aerial-yoga")
    assert yoga.capacity == 18
    assert yoga.booked_names == ["Alice", "Bob"]
    assert yoga.booking_count == 2
    assert snapshot.get("s8").booked_names == []
    assert snapshot.get("s8").booking_count == 0


def test_quoted_commas_do_not_split_the_row():
    snapshot = parse_bookings_csv(BOOKINGS_CSV)

    plain = snapshot.get("s1")
    assert plain.session_name == "Acro Basics"
    assert plain.capacity == 5
    assert plain.booked_names == ["Alice", "Jr.", "Bob"]

    escaped = snapshot.get("s2")
    assert escaped.capacity == 5
    assert escaped.booked_names == ["Alice, Jr.", "Bob"]


def test_quoted_newline_stays_inside_field():
    snapshot = parse_bookings_csv(BOOKINGS_CSV)

    assert snapshot.get("s3").session_name == "Acro\nJam"
    assert snapshot.get("s3").booked_names == ["Dana"]


def test_missing_headers_means_unknown():
    assert parse_bookings_csv("Time Slot,Names\n14:00,Alice\n") is None


def test_names_round_trip_through_webhook_format():
    names = ["Alice, Jr.", "Bob", "Carol \"CJ\" Jones"]

    assert split_names(join_names(names)) == names
    assert split_names("  Alice ,, Bob ,") == ["Alice", "Bob"]
    assert split_names("") == []


@pytest.mark.asyncio
async def test_fetch_parses_successful_response():
    reader = make_reader(lambda request: httpx.Response(200, text=BOOKINGS_CSV))

    snapshot = await reader.fetch()

    assert snapshot is not None
    assert "s1" in snapshot
    assert len(snapshot) == 5


@pytest.mark.asyncio
async def test_fetch_empty_body_is_empty_snapshot():
    reader = make_reader(lambda request: httpx.Response(200, text="  \n"))

    snapshot = await reader.fetch()

    assert snapshot is not None
    assert len(snapshot) == 0


@pytest.mark.asyncio
async def test_fetch_error_status_is_unknown():
    reader = make_reader(lambda request: httpx.Response(404, text="not found"))

    assert await reader.fetch() is None


@pytest.mark.asyncio
async def test_fetch_network_failure_is_unknown():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    reader = make_reader(handler)

    assert await reader.fetch() is None
