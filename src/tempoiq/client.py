"""TempoIQ API client.

Example:
    async with Client.from_settings() as client:
        pipeline = Pipeline().rollup("sum", "1day", start).aggregate("mean")
        async for row in client.read({"devices": {"key": "d1"}}, start, end, pipeline):
            print(row.ts, row.value("d1", "mean"))
"""

from datetime import datetime
from typing import Any
from urllib.parse import quote

import structlog

from tempoiq.core.config import Settings, get_settings
from tempoiq.cursor import Cursor, PageFetcher
from tempoiq.errors import UnexpectedStatusError
from tempoiq.models.datapoint import ensure_utc, format_timestamp
from tempoiq.models.device import DeleteSummary, Device
from tempoiq.models.pipeline import Pipeline, fold_section
from tempoiq.models.row import Row
from tempoiq.models.selection import Selection
from tempoiq.models.write import WRITE_PATH, BulkWrite, WriteStatus
from tempoiq.session.base import Response, Session
from tempoiq.session.http import HttpSession

logger = structlog.get_logger()

DEVICES_PATH = "/v2/devices"
READ_PATH = "/v2/read"
SINGLE_PATH = "/v2/single"

SelectionLike = Selection | dict[str, Any] | None


def _device_path(device_key: str) -> str:
    return f"{DEVICES_PATH}/{quote(device_key, safe='')}"


def _datapoints_path(device_key: str, sensor_key: str) -> str:
    return f"{_device_path(device_key)}/sensors/{quote(sensor_key, safe='')}/datapoints"


def _check_range(start: datetime, end: datetime) -> None:
    if ensure_utc(start) >= ensure_utc(end):
        raise ValueError(f"Empty time range: start {start} is not before end {end}")


class Client:
    """
    Asynchronous client for device provisioning, writes and reads.

    Single-resource lookups return None/False on 404. Any status an
    operation does not handle raises UnexpectedStatusError; transport
    failures raise TransportError.
    """

    def __init__(
        self,
        key: str,
        secret: str,
        host: str,
        port: int | None = None,
        secure: bool = True,
        timeout: float = 30.0,
        page_size: int | None = None,
        session: Session | None = None,
    ):
        self.key = key
        self.secret = secret
        self.host = host
        self.port = port
        self.secure = secure
        self.page_size = page_size

        if session is None:
            settings = Settings(
                key=key, secret=secret, host=host, port=port, secure=secure, timeout=timeout
            )
            session = HttpSession.from_settings(settings)
        self._session = session

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        session: Session | None = None,
    ) -> "Client":
        """Build a client from environment-backed settings."""
        settings = settings or get_settings()
        return cls(
            key=settings.key,
            secret=settings.secret,
            host=settings.host,
            port=settings.port,
            secure=settings.secure,
            timeout=settings.timeout,
            page_size=settings.page_size,
            session=session,
        )

    @property
    def session(self) -> Session:
        return self._session

    async def close(self) -> None:
        await self._session.close()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        expected: tuple[int, ...] = (200,),
    ) -> Response:
        response = await self._session.request(method, path, body)
        if response.status_code not in expected:
            logger.warning(
                "Unexpected status",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise UnexpectedStatusError(method, path, response.status_code, response.body)
        return response

    # ============ Device Provisioning ============

    async def create_device(self, device: Device) -> Device:
        """Create a device with its sensors."""
        response = await self._request("POST", DEVICES_PATH, device.to_json())
        created = Device.from_json(response.body)
        logger.info("Device created", device_key=created.key, sensors=len(created.sensors))
        return created

    async def get_device(self, device_key: str) -> Device | None:
        """Get a device by key, or None if it does not exist."""
        response = await self._request("GET", _device_path(device_key), expected=(200, 404))
        if response.status_code == 404:
            return None
        return Device.from_json(response.body)

    async def update_device(self, device: Device) -> Device:
        """Replace a device's name, attributes and sensors."""
        response = await self._request("PUT", _device_path(device.key), device.to_json())
        return Device.from_json(response.body)

    async def delete_device(self, device_key: str) -> bool:
        """
        Delete a device by key.

        Returns:
            True if deleted, False if no such device exists
        """
        response = await self._request(
            "DELETE", _device_path(device_key), expected=(200, 404)
        )
        deleted = response.status_code == 200
        logger.info("Device delete", device_key=device_key, deleted=deleted)
        return deleted

    async def delete_devices(self, selection: SelectionLike) -> DeleteSummary:
        """
        Delete every device matching the selection; zero matches is not an error.

        Raises:
            ValueError: If no selection is given. Deleting every device takes
                an explicit ``Selection(devices=AllSelector())``.
        """
        if selection is None or (isinstance(selection, dict) and not selection):
            raise ValueError("delete_devices requires a selection")
        body = {"search": Selection.coerce(selection).to_json()}
        response = await self._request("DELETE", DEVICES_PATH, body)
        summary = DeleteSummary.from_json(response.body)
        logger.info("Devices deleted", deleted=summary.deleted)
        return summary

    def list_devices(self, selection: SelectionLike = None) -> Cursor[Device]:
        """Cursor over the devices matching the selection."""
        body = {"search": Selection.coerce(selection).to_json()}
        fetcher = PageFetcher(self._session, "GET", DEVICES_PATH, Device.from_json)
        return Cursor(fetcher, body)

    # ============ Writing ============

    async def write_bulk(self, write: BulkWrite) -> WriteStatus:
        """
        Submit a bulk write.

        The write is sealed as soon as submission starts and cannot be
        reused. A multi-status (207) response is returned as a partial or
        failed WriteStatus rather than raised.
        """
        if not write:
            raise ValueError("Bulk write contains no datapoints")
        write.seal()

        response = await self._session.request("POST", WRITE_PATH, write.to_json())
        status = WriteStatus.from_response(
            response.status_code, response.body, write.device_keys
        )

        if status.is_success():
            logger.info("Bulk write succeeded", devices=len(write.device_keys), points=len(write))
        else:
            logger.warning(
                "Bulk write incomplete",
                result=status.result.value,
                failed_devices=list(status.failures()),
            )
        return status

    async def write_device(
        self,
        device_key: str,
        timestamp: datetime,
        values: dict[str, float],
    ) -> WriteStatus:
        """Write one value per sensor of a device at a single timestamp."""
        return await self.write_bulk(BulkWrite.from_values(device_key, timestamp, values))

    async def delete_datapoints(
        self,
        device_key: str,
        sensor_key: str,
        start: datetime,
        end: datetime,
    ) -> DeleteSummary:
        """Delete a sensor's datapoints in ``[start, end)``."""
        _check_range(start, end)
        body = {"start": format_timestamp(start), "stop": format_timestamp(end)}
        response = await self._request("DELETE", _datapoints_path(device_key, sensor_key), body)
        return DeleteSummary.from_json(response.body)

    # ============ Reading ============

    def read(
        self,
        selection: SelectionLike,
        start: datetime,
        end: datetime,
        pipeline: Pipeline | None = None,
    ) -> Cursor[Row]:
        """
        Cursor over rows in ``[start, end)`` for the selected sensors.

        Without a pipeline the rows hold raw per-sensor values; with one,
        the keys are whatever the final pipeline step produces (e.g. "mean").
        """
        _check_range(start, end)

        read_section: dict[str, Any] = {
            "start": format_timestamp(start),
            "stop": format_timestamp(end),
        }
        if self.page_size:
            read_section["limit"] = self.page_size

        body: dict[str, Any] = {
            "search": Selection.coerce(selection).to_json(),
            "read": read_section,
        }
        fold = fold_section(pipeline)
        if fold is not None:
            body["fold"] = fold

        fetcher = PageFetcher(self._session, "GET", READ_PATH, Row.from_json)
        return Cursor(fetcher, body)

    def latest(
        self,
        selection: SelectionLike,
        pipeline: Pipeline | None = None,
    ) -> Cursor[Row]:
        """Cursor over the latest known value of each selected sensor."""
        body: dict[str, Any] = {
            "search": Selection.coerce(selection).to_json(),
            "single": {"function": "latest"},
        }
        fold = fold_section(pipeline)
        if fold is not None:
            body["fold"] = fold

        fetcher = PageFetcher(self._session, "GET", SINGLE_PATH, Row.from_json)
        return Cursor(fetcher, body)
