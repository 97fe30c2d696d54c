# tests/core/test_alert_dispatcher.py
"""
Тесты для SOS-диспетчера.
"""

from __future__ import annotations

from typing import Callable
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from track_monitor.common.constants import EventType
from track_monitor.core.alerts import WARNING_TEMPLATE, AlertDispatcher, AlertResult
from track_monitor.core.nmea import Fix
from track_monitor.core.positions import TrackPositionEngine
from track_monitor.shared.models import AlertRecord, StatusRecord


class TestSubmitAlert:
    """Тесты рассылки SOS."""

    @pytest.fixture
    def dispatcher(self, engine: TrackPositionEngine, mock_broadcaster: MagicMock) -> AlertDispatcher:
        """Диспетчер с мок-рассыльщиком."""
        return AlertDispatcher(engine, mock_broadcaster)

    @pytest.mark.asyncio
    async def test_alert_without_trailing(
        self,
        dispatcher: AlertDispatcher,
        mock_broadcaster: MagicMock,
    ) -> None:
        """SOS без машин позади: только событие sos."""
        result = await dispatcher.submit_alert("A", "engine fire")

        assert isinstance(result, AlertResult)
        assert result.warning is None
        assert result.alert.vehicle_id == "A"
        assert result.alert.message == "engine fire"
        mock_broadcaster.publish.assert_called_once_with(EventType.SOS, result.alert)

    @pytest.mark.asyncio
    async def test_alert_logged_as_warning(self, dispatcher: AlertDispatcher) -> None:
        """SOS пишется в лог уровнем WARNING."""
        with patch("track_monitor.core.alerts.dispatcher.log_warning", new_callable=AsyncMock) as mock_warning:
            await dispatcher.submit_alert("A", "engine fire")

        mock_warning.assert_awaited_once()
        assert "engine fire" in mock_warning.await_args.args[0]

    @pytest.mark.asyncio
    async def test_alert_warns_trailing(
        self,
        dispatcher: AlertDispatcher,
        engine: TrackPositionEngine,
        mock_broadcaster: MagicMock,
        make_fix: Callable[..., Fix],
    ) -> None:
        """SOS с машиной позади: sos, затем warning этой машине."""
        await engine.update_position("A", make_fix(0, 0))
        await engine.update_position("B", make_fix(0, 3))

        result = await dispatcher.submit_alert("A", "help")

        assert result.warning == AlertRecord(
            vehicle_id="B",
            message=WARNING_TEMPLATE.format(vehicle_id="A"),
            timestamp=result.warning.timestamp,
        )
        assert result.warning.message == (
            "Warning: Car A ahead has sent an SOS alert. Please proceed with caution."
        )

        calls = mock_broadcaster.publish.call_args_list
        assert [c.args[0] for c in calls] == [EventType.SOS, EventType.WARNING]
        assert calls[1].args[1] is result.warning

    @pytest.mark.asyncio
    async def test_unknown_vehicle_still_broadcast(
        self,
        dispatcher: AlertDispatcher,
        engine: TrackPositionEngine,
        mock_broadcaster: MagicMock,
        make_fix: Callable[..., Fix],
    ) -> None:
        """SOS от неизвестной машины рассылается, предупреждения нет."""
        await engine.update_position("B", make_fix(0, 1))

        result = await dispatcher.submit_alert("ghost", "?")

        assert result.warning is None
        assert mock_broadcaster.publish.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_fields_allowed(self, dispatcher: AlertDispatcher) -> None:
        """SOS без carId и текста не отклоняется."""
        result = await dispatcher.submit_alert(None, None)

        assert result.alert.vehicle_id is None
        assert result.alert.message is None

    @pytest.mark.asyncio
    async def test_stats(
        self,
        dispatcher: AlertDispatcher,
        engine: TrackPositionEngine,
        make_fix: Callable[..., Fix],
    ) -> None:
        """Счётчики SOS и предупреждений."""
        await engine.update_position("A", make_fix(0, 0))
        await engine.update_position("B", make_fix(0, 1))

        await dispatcher.submit_alert("A", "1")
        await dispatcher.submit_alert("ghost", "2")
        await dispatcher.submit_status("A", "ok")

        assert dispatcher.get_stats() == {
            "total_alerts": 2,
            "total_warnings": 1,
            "total_statuses": 1,
        }


class TestSubmitStatus:
    """Тесты статуса OK."""

    @pytest.mark.asyncio
    async def test_status_broadcast_as_list(
        self,
        engine: TrackPositionEngine,
        mock_broadcaster: MagicMock,
    ) -> None:
        """Статус рассылается списком из одной записи."""
        dispatcher = AlertDispatcher(engine, mock_broadcaster)

        status = await dispatcher.submit_status("car7", "all good")

        assert isinstance(status, StatusRecord)
        assert status.vehicle_id == "car7"
        assert status.timestamp.tzinfo is not None
        mock_broadcaster.publish.assert_called_once_with(EventType.OK, [status])
