"""Test MemoryEventBus publish/subscribe, history and handler failures."""

import pytest

from firewall_deleter.core.errors import FatalConnectorError


class TestMemoryEventBusPublishSubscribe:
    async def test_publish_invokes_handler(self, memory_bus):
        received = []

        async def handler(data: bytes) -> None:
            received.append(data)

        await memory_bus.subscribe("test.topic", "group1", handler)
        await memory_bus.publish("test.topic", b"payload")

        assert received == [b"payload"]

    async def test_no_handler_for_topic(self, memory_bus):
        received = []

        async def handler(data: bytes) -> None:
            received.append(data)

        await memory_bus.subscribe("topic_a", "group1", handler)
        await memory_bus.publish("topic_b", b"x")

        assert received == []

    async def test_multiple_subscribers(self, memory_bus):
        received_a = []
        received_b = []

        async def handler_a(data: bytes) -> None:
            received_a.append(data)

        async def handler_b(data: bytes) -> None:
            received_b.append(data)

        await memory_bus.subscribe("test.topic", "group_a", handler_a)
        await memory_bus.subscribe("test.topic", "group_b", handler_b)
        await memory_bus.publish("test.topic", b"x")

        assert received_a == received_b == [b"x"]


class TestMemoryBusErrorHandling:
    async def test_handler_error_does_not_break_others(self, memory_bus):
        received = []

        async def bad_handler(data: bytes) -> None:
            raise ValueError("boom")

        async def good_handler(data: bytes) -> None:
            received.append(data)

        await memory_bus.subscribe("t", "bad", bad_handler)
        await memory_bus.subscribe("t", "good", good_handler)
        await memory_bus.publish("t", b"x")

        assert received == [b"x"]
        assert [dl.group for dl in memory_bus.dead_letters] == ["bad"]
        assert memory_bus.messages_processed == 1

    async def test_dead_letter_recorded(self, memory_bus):
        async def bad_handler(data: bytes) -> None:
            raise ValueError("serialize error")

        await memory_bus.subscribe("t", "g1", bad_handler)
        await memory_bus.publish("t", b"x")

        dls = memory_bus.dead_letters
        assert len(dls) == 1
        assert dls[0].topic == "t"
        assert dls[0].group == "g1"
        assert dls[0].data == b"x"
        assert "serialize error" in dls[0].error

    async def test_fatal_error_propagates(self, memory_bus):
        async def fatal_handler(data: bytes) -> None:
            raise FatalConnectorError("halt")

        await memory_bus.subscribe("t", "g", fatal_handler)
        with pytest.raises(FatalConnectorError):
            await memory_bus.publish("t", b"x")

    async def test_messages_processed_count(self, memory_bus):
        async def ok_handler(data: bytes) -> None:
            pass

        await memory_bus.subscribe("t", "g", ok_handler)
        await memory_bus.publish("t", b"1")
        await memory_bus.publish("t", b"2")
        assert memory_bus.messages_processed == 2


class TestMemoryEventBusHistory:
    async def test_history_filter_by_topic(self, memory_bus):
        await memory_bus.publish("topic_a", b"a")
        await memory_bus.publish("topic_b", b"b")
        await memory_bus.publish("topic_a", b"a2")

        assert len(memory_bus.get_history()) == 3
        assert memory_bus.get_history("topic_a") == [("topic_a", b"a"), ("topic_a", b"a2")]

    async def test_start_stop(self, memory_bus):
        await memory_bus.start()
        await memory_bus.stop()
