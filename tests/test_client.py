"""Tests for the API client against a stubbed session."""

import json
from datetime import datetime, timezone

import pytest

from tempoiq.client import Client
from tempoiq.errors import TransportError, UnexpectedStatusError, WriteAlreadySubmitted
from tempoiq.models.datapoint import DataPoint, format_timestamp
from tempoiq.models.device import Device
from tempoiq.models.pipeline import Pipeline
from tempoiq.models.selection import AllSelector, Selection
from tempoiq.models.write import BulkWrite

START = datetime(2012, 2, 1, tzinfo=timezone.utc)
END = datetime(2012, 2, 2, tzinfo=timezone.utc)
TS = datetime(2012, 2, 1, 1, tzinfo=timezone.utc)
TS2 = datetime(2012, 2, 1, 2, tzinfo=timezone.utc)


def row_json(ts: datetime, data: dict) -> dict:
    return {"t": format_timestamp(ts), "data": data}


class TestInitialization:
    """Tests for client construction."""

    def test_construction_parameters(self):
        """Should keep the construction parameters."""
        client = Client("key", "secret", "host", port=80)

        assert client.key == "key"
        assert client.secret == "secret"
        assert client.host == "host"
        assert client.port == 80

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self, client, session):
        """Should close the session on exit."""
        async with client:
            pass

        assert session.closed


class TestDeviceProvisioning:
    """Tests for device create/get/update/delete/list."""

    @pytest.mark.asyncio
    async def test_create_device(self, client, session, device):
        """Should post the device and return the created one."""
        session.stub("POST", "/v2/devices", 200, json.dumps(device.to_json()))

        created = await client.create_device(device)

        assert created.key == device.key
        assert created.name == "My Awesome Device"
        assert created.attributes["building"] == "1234"
        assert [s.key for s in created.sensors] == ["sensor1", "sensor2"]
        assert session.requests[0].body == device.to_json()

    @pytest.mark.asyncio
    async def test_create_then_get_round_trip(self, client, session, device):
        """Should get back an identical device."""
        session.stub("POST", "/v2/devices", 200, device.to_json())
        created = await client.create_device(device)

        session.stub("GET", f"/v2/devices/{device.key}", 200, created.to_json())
        found = await client.get_device(device.key)

        assert found == device

    @pytest.mark.asyncio
    async def test_get_device_not_found(self, client, session):
        """Should return None on 404."""
        session.stub("GET", "/v2/devices/not_found", 404, "")

        assert await client.get_device("not_found") is None

    @pytest.mark.asyncio
    async def test_get_device_quotes_key(self, client, session):
        """Should URL-quote the device key in the path."""
        session.stub("GET", "/v2/devices/a%2Fb%20c", 404)

        assert await client.get_device("a/b c") is None
        assert session.requests[0].path == "/v2/devices/a%2Fb%20c"

    @pytest.mark.asyncio
    async def test_get_device_server_error(self, client, session):
        """Should raise on unhandled status codes."""
        session.stub("GET", "/v2/devices/d1", 500, {"message": "boom"})

        with pytest.raises(UnexpectedStatusError) as exc_info:
            await client.get_device("d1")

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == {"message": "boom"}

    @pytest.mark.asyncio
    async def test_update_device(self, client, session, device):
        """Should put the device and return the updated one."""
        device.name = "Updated"
        session.stub("PUT", f"/v2/devices/{device.key}", 200, device.to_json())

        updated = await client.update_device(device)

        assert updated.name == "Updated"
        assert session.requests[0].method == "PUT"

    @pytest.mark.asyncio
    async def test_delete_device_by_key(self, client, session, device):
        """Should return True when the device was deleted."""
        session.stub("DELETE", f"/v2/devices/{device.key}", 200)

        assert await client.delete_device(device.key) is True

    @pytest.mark.asyncio
    async def test_delete_missing_device(self, client, session):
        """Should return False instead of raising on 404."""
        session.stub("DELETE", "/v2/devices/missing", 404)

        assert await client.delete_device("missing") is False

    @pytest.mark.asyncio
    async def test_delete_devices_by_selection(self, client, session, device):
        """Should send the selection and return the deleted count."""
        session.stub("DELETE", "/v2/devices", 200, {"deleted": 1})

        summary = await client.delete_devices({"devices": {"key": device.key}})

        assert summary.deleted == 1
        assert session.requests[0].body == {
            "search": {
                "select": "devices",
                "filters": {"devices": {"key": device.key}, "sensors": "all"},
            }
        }

    @pytest.mark.asyncio
    async def test_delete_devices_no_match(self, client, session):
        """Should report zero deletions without error."""
        session.stub("DELETE", "/v2/devices", 200, {"deleted": 0})

        summary = await client.delete_devices({"devices": {"attributes": {"nope": "x"}}})

        assert summary.deleted == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("selection", [None, {}])
    async def test_delete_devices_requires_selection(self, client, session, selection):
        """Should refuse a bulk delete without a selection."""
        session.stub("DELETE", "/v2/devices", 200, {"deleted": 3})

        with pytest.raises(ValueError):
            await client.delete_devices(selection)

        assert session.requests == []

    @pytest.mark.asyncio
    async def test_delete_all_devices_explicitly(self, client, session):
        """Should delete every device when asked for explicitly."""
        session.stub("DELETE", "/v2/devices", 200, {"deleted": 3})

        summary = await client.delete_devices(Selection(devices=AllSelector()))

        assert summary.deleted == 3
        assert session.requests[0].body["search"]["filters"] == {"devices": "all", "sensors": "all"}

    @pytest.mark.asyncio
    async def test_list_devices_streamed(self, client, session, device):
        """Should yield devices one by one."""
        session.stub("GET", "/v2/devices", 200, {"data": [device.to_json()]})

        devices = []
        async for found in client.list_devices({"devices": {"key": device.key}}):
            devices.append(found)

        assert len(devices) == 1
        assert devices[0].key == device.key

    @pytest.mark.asyncio
    async def test_list_devices_buffered(self, client, session, device):
        """Should collect every device into a list."""
        session.stub("GET", "/v2/devices", 200, {"data": [device.to_json()]})

        devices = await client.list_devices({"devices": {"key": device.key}}).to_list()

        assert [d.key for d in devices] == [device.key]

    @pytest.mark.asyncio
    async def test_list_devices_without_selection(self, client, session):
        """Should select all devices when no selection is given."""
        session.stub("GET", "/v2/devices", 200, {"data": []})

        assert await client.list_devices().to_list() == []
        assert session.requests[0].body["search"]["filters"] == {
            "devices": "all",
            "sensors": "all",
        }


class TestWriting:
    """Tests for bulk and single-device writes."""

    @pytest.mark.asyncio
    async def test_bulk_write(self, client, session, device):
        """Should report success on 200."""
        session.stub("POST", "/v2/write", 200)

        write = BulkWrite()
        write.push(device.key, "sensor1", DataPoint(START, 1.23))
        status = await client.write_bulk(write)

        assert status.is_success()
        assert status.failures() == {}
        assert session.requests[0].body == {
            device.key: {"sensor1": [{"t": "2012-02-01T00:00:00.000Z", "v": 1.23}]}
        }

    @pytest.mark.asyncio
    async def test_partial_write_failure(self, client, session, device):
        """Should report the failing device on 207."""
        message = "error writing to storage: FERR_NO_SENSOR: No sensor with key found in device."
        session.stub("POST", "/v2/write", 207, json.dumps({
            device.key: {"success": False, "message": message},
        }))

        write = BulkWrite()
        write.push(device.key, "sensor1", DataPoint(START, 1.23))
        write.push(device.key, "not_here", DataPoint(START, 2.34))
        status = await client.write_bulk(write)

        assert status.is_partial_success()
        assert not status.is_success()
        assert status.failures() == {device.key: message}

    @pytest.mark.asyncio
    async def test_write_rejected_status_raises(self, client, session, device):
        """Should raise for statuses other than 200 and 207."""
        session.stub("POST", "/v2/write", 400, {"message": "bad body"})

        write = BulkWrite().push(device.key, "sensor1", DataPoint(START, 1.0))

        with pytest.raises(UnexpectedStatusError) as exc_info:
            await client.write_bulk(write)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_write_is_one_shot(self, client, session, device):
        """Should refuse to reuse a submitted write."""
        session.stub("POST", "/v2/write", 200)
        write = BulkWrite().push(device.key, "sensor1", DataPoint(START, 1.0))

        await client.write_bulk(write)

        with pytest.raises(WriteAlreadySubmitted):
            await client.write_bulk(write)
        with pytest.raises(WriteAlreadySubmitted):
            write.push(device.key, "sensor1", DataPoint(END, 2.0))
        assert len(session.requests) == 1

    @pytest.mark.asyncio
    async def test_empty_write_rejected(self, client, session):
        """Should not send an empty write."""
        with pytest.raises(ValueError):
            await client.write_bulk(BulkWrite())
        assert session.requests == []

    @pytest.mark.asyncio
    async def test_write_device(self, client, session, device):
        """Should write one value per sensor at a single timestamp."""
        session.stub("POST", "/v2/write", 200)

        status = await client.write_device(device.key, TS, {"sensor1": 4.0, "sensor2": 2.0})

        assert status.is_success()
        assert session.requests[0].body == {
            device.key: {
                "sensor1": [{"t": "2012-02-01T01:00:00.000Z", "v": 4.0}],
                "sensor2": [{"t": "2012-02-01T01:00:00.000Z", "v": 2.0}],
            }
        }

    @pytest.mark.asyncio
    async def test_write_transport_error(self, client, session, device):
        """Should surface transport failures unchanged."""
        with pytest.raises(TransportError):
            await client.write_device(device.key, TS, {"sensor1": 1.0})


class TestReading:
    """Tests for range reads."""

    @pytest.mark.asyncio
    async def test_read_with_pipeline(self, client, session, device):
        """Should return the rolled-up and aggregated value."""
        session.stub("POST", "/v2/write", 200)
        await client.write_device(device.key, TS, {"sensor1": 4.0, "sensor2": 2.0})
        await client.write_device(device.key, TS2, {"sensor1": 4.0, "sensor2": 2.0})

        session.stub("GET", "/v2/read", 200, {
            "data": [row_json(START, {device.key: {"mean": 6.0}})],
        })
        pipeline = Pipeline().rollup("sum", "1day", START).aggregate("mean")

        rows = []
        async for row in client.read({"devices": {"key": device.key}}, START, END, pipeline):
            rows.append(row)

        assert len(rows) == 1
        assert rows[0].ts == START
        assert rows[0].value(device.key, "mean") == 6.0

        body = session.requests_for("GET", "/v2/read")[0].body
        assert body["read"] == {
            "start": "2012-02-01T00:00:00.000Z",
            "stop": "2012-02-02T00:00:00.000Z",
        }
        assert body["fold"] == {"functions": [
            {"name": "rollup", "arguments": ["sum", "1day", "2012-02-01T00:00:00.000Z"]},
            {"name": "aggregation", "arguments": ["mean"]},
        ]}

    @pytest.mark.asyncio
    async def test_read_without_pipeline(self, client, session, device):
        """Should return raw per-sensor values and send no fold section."""
        session.stub("GET", "/v2/read", 200, {
            "data": [row_json(TS, {device.key: {"sensor1": 4.0, "sensor2": 2.0}})],
        })

        rows = await client.read({"devices": {"key": device.key}}, START, END).to_list()

        assert rows[0].ts == TS
        assert rows[0].value(device.key, "sensor1") == 4.0
        assert rows[0].value(device.key, "sensor2") == 2.0
        assert rows[0].value(device.key, "mean") is None
        assert "fold" not in session.requests[0].body

    @pytest.mark.asyncio
    async def test_empty_pipeline_matches_no_pipeline(self, client, session, device):
        """Should send identical bodies for no pipeline and an empty one."""
        session.stub("GET", "/v2/read", 200, {"data": []})
        selection = {"devices": {"key": device.key}}

        await client.read(selection, START, END).to_list()
        await client.read(selection, START, END, Pipeline()).to_list()

        first, second = session.requests
        assert first.body == second.body

    @pytest.mark.asyncio
    async def test_read_buffered(self, client, session, device):
        """Should collect every row in server order."""
        data = {device.key: {"sensor1": 1.23}}
        session.stub("GET", "/v2/read", 200, {
            "data": [row_json(TS, data), row_json(TS2, data)],
        })

        rows = await client.read({"devices": {"key": device.key}}, START, END).to_list()

        assert len(rows) == 2
        assert [r.ts for r in rows] == [TS, TS2]

    @pytest.mark.asyncio
    async def test_read_page_size(self, session, device):
        """Should send the configured page size as a read limit."""
        client = Client("k", "s", "h", page_size=500, session=session)
        session.stub("GET", "/v2/read", 200, {"data": []})

        await client.read({"devices": {"key": device.key}}, START, END).to_list()

        assert session.requests[0].body["read"]["limit"] == 500

    def test_read_rejects_empty_range(self, client):
        """Should refuse a range whose start is not before its end."""
        with pytest.raises(ValueError):
            client.read({"devices": {"key": "d"}}, END, START)


class TestLatest:
    """Tests for latest-value queries."""

    @pytest.mark.asyncio
    async def test_latest_buffered(self, client, session, device):
        """Should return one row per device."""
        session.stub("GET", "/v2/single", 200, {
            "data": [row_json(TS, {device.key: {"sensor1": 4.0, "sensor2": 2.0}})],
        })

        rows = await client.latest({"devices": {"key": device.key}}, Pipeline()).to_list()

        assert len(rows) == 1
        assert rows[0].ts == TS
        body = session.requests[0].body
        assert body["single"] == {"function": "latest"}
        assert "fold" not in body

    @pytest.mark.asyncio
    async def test_latest_streamed(self, client, session, device):
        """Should push each value then signal the end."""
        session.stub("GET", "/v2/single", 200, {
            "data": [row_json(TS, {device.key: {"sensor1": 4.0, "sensor2": 2.0}})],
        })
        values = []
        ended = []

        await client.latest({"devices": {"key": device.key}}).stream(
            values.append,
            on_end=lambda: ended.append(True),
        )

        assert len(values) == 1
        assert ended == [True]


class TestDeletingDatapoints:
    """Tests for datapoint deletion."""

    @pytest.mark.asyncio
    async def test_delete_datapoints(self, client, session, device):
        """Should delete the range and return the count."""
        path = f"/v2/devices/{device.key}/sensors/sensor1/datapoints"
        session.stub("DELETE", path, 200, {"deleted": 1})

        summary = await client.delete_datapoints(device.key, "sensor1", START, END)

        assert summary.deleted == 1
        assert session.requests[0].body == {
            "start": "2012-02-01T00:00:00.000Z",
            "stop": "2012-02-02T00:00:00.000Z",
        }
