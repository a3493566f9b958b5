import asyncio

import pytest

from energy_acquisition.core import ConnectionState, ConnectionStateMachine
from energy_acquisition.core.exceptions import NotConnected, ReadTimeout, TransportError
from energy_acquisition.protocols import ReadRequest
from energy_acquisition.services import ConnectionManager

REQUEST = ReadRequest(unit_id=1, register=4608, count=2)


def test_state_machine_transitions():
    sm = ConnectionStateMachine()
    assert sm.state is ConnectionState.DISCONNECTED
    assert not sm.transition(ConnectionState.CONNECTED)
    assert sm.transition(ConnectionState.CONNECTING)
    assert sm.transition(ConnectionState.CONNECTED)
    assert not sm.can(ConnectionState.CONNECTING)
    assert sm.transition(ConnectionState.DISCONNECTED)


def test_connect_and_disconnect(make_transport):
    async def scenario():
        transport = make_transport()
        manager = ConnectionManager(transport, reconnect_delay=60)
        assert await manager.connect()
        assert manager.state is ConnectionState.CONNECTED
        assert manager.is_connected()
        assert transport.is_open

        await manager.disconnect()
        assert manager.state is ConnectionState.DISCONNECTED
        assert not transport.is_open
        assert not manager.reconnect_pending

    asyncio.run(scenario())


def test_failed_connect_does_not_retry(make_transport):
    async def scenario():
        transport = make_transport(fail_open=True)
        manager = ConnectionManager(transport, reconnect_delay=0.01)
        assert not await manager.connect()
        assert manager.state is ConnectionState.DISCONNECTED
        assert not manager.reconnect_pending
        await asyncio.sleep(0.05)
        assert transport.open_calls == 1

    asyncio.run(scenario())


def test_connect_is_a_no_op_when_already_connected(make_transport):
    async def scenario():
        transport = make_transport()
        manager = ConnectionManager(transport)
        await manager.connect()
        assert await manager.connect()
        assert transport.open_calls == 1
        await manager.disconnect()

    asyncio.run(scenario())


def test_close_event_schedules_exactly_one_reconnect(make_transport):
    async def scenario():
        transport = make_transport()
        manager = ConnectionManager(transport, reconnect_delay=60)
        await manager.connect()

        transport.fail_reads = True
        with pytest.raises(TransportError):
            await manager.with_channel(lambda t: t.exchange(REQUEST))

        assert manager.state is ConnectionState.DISCONNECTED
        assert manager.reconnect_pending
        pending = manager._reconnect_task

        manager.connection_lost(TransportError("again"))
        manager.schedule_reconnect()
        assert manager._reconnect_task is pending

        await manager.disconnect()
        assert not manager.reconnect_pending
        assert pending.cancelled()

    asyncio.run(scenario())


def test_reconnects_after_delay(make_transport):
    async def scenario():
        transport = make_transport()
        manager = ConnectionManager(transport, reconnect_delay=0.01)
        await manager.connect()
        transport.fail_reads = True
        with pytest.raises(TransportError):
            await manager.with_channel(lambda t: t.exchange(REQUEST))

        transport.fail_reads = False
        await asyncio.sleep(0.1)
        assert manager.state is ConnectionState.CONNECTED
        assert manager.reconnect_attempts == 1
        assert transport.open_calls == 2
        await manager.disconnect()

    asyncio.run(scenario())


def test_reconnect_keeps_retrying_until_the_meter_answers(make_transport):
    async def scenario():
        transport = make_transport(fail_open=True)
        manager = ConnectionManager(transport, reconnect_delay=0.01)
        assert not await manager.connect()
        manager.schedule_reconnect()
        await asyncio.sleep(0.05)
        assert manager.reconnect_attempts >= 2
        assert not manager.is_connected()

        transport.fail_open = False
        await asyncio.sleep(0.05)
        assert manager.is_connected()
        assert not manager.reconnect_pending
        await manager.disconnect()

    asyncio.run(scenario())


def test_read_timeout_drops_the_link(make_transport, make_image, catalog):
    async def scenario():
        transport = make_transport(make_image(catalog, {"VOLTAGE_L1N": 230.0}),
                                   read_timeout=0.02, delay=0.5)
        manager = ConnectionManager(transport, reconnect_delay=60)
        await manager.connect()
        with pytest.raises(ReadTimeout):
            await manager.with_channel(lambda t: t.exchange(REQUEST))
        assert manager.state is ConnectionState.DISCONNECTED
        assert not transport.is_open
        await manager.disconnect()

    asyncio.run(scenario())


def test_with_channel_requires_a_connection(make_transport):
    async def scenario():
        manager = ConnectionManager(make_transport())
        with pytest.raises(NotConnected):
            await manager.with_channel(lambda t: t.exchange(REQUEST))

    asyncio.run(scenario())


def test_mock_mode_is_always_connected():
    async def scenario():
        manager = ConnectionManager(None, mock_mode=True)
        assert manager.is_connected()
        assert await manager.connect()
        status = manager.status()
        assert status["mock_mode"] is True
        assert status["endpoint"] is None
        await manager.disconnect()
        assert manager.is_connected()

    asyncio.run(scenario())


def test_transport_required_outside_mock_mode():
    with pytest.raises(ValueError):
        ConnectionManager(None)


def test_status_reports_endpoint(make_transport):
    manager = ConnectionManager(make_transport())
    status = manager.status()
    assert status["state"] == "disconnected"
    assert status["endpoint"] == "fake://meter"
    assert status["connected"] is False
