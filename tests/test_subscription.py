import asyncio

import pytest

from conftest import FakeTransport, settle

from pyscenedit.errors import RemoteOperationError
from pyscenedit.lifecycle import RequestState
from pyscenedit.operations import SceneService, SubscriptionEvent
from pyscenedit.subscription import SubscriptionFeed


def node(name, mesh=None):
    return {"nodeAdded": {"name": name, "mesh": {"name": mesh} if mesh else None}}


def test_three_events_observed_once_in_order():
    async def run_test():
        transport = FakeTransport()
        feed = SubscriptionFeed(SceneService(transport))
        seen = []
        feed.register_event_handler(seen.append)
        feed.open()
        for name, mesh in (("Cube", "cube_mesh"), ("Sphere", "sphere_mesh"), ("Camera", None)):
            transport.push(node(name, mesh))
        await settle()
        still_open = feed.is_open
        state = feed.lifecycle.state
        await feed.close()
        return seen, still_open, state, feed

    seen, still_open, state, feed = asyncio.run(run_test())
    assert seen == [
        SubscriptionEvent("Cube", "cube_mesh"),
        SubscriptionEvent("Sphere", "sphere_mesh"),
        SubscriptionEvent("Camera", None),
    ]
    assert still_open
    assert state is RequestState.PENDING
    assert feed.lifecycle.latest == SubscriptionEvent("Camera", None)


def test_feed_cannot_be_restarted():
    async def run_test():
        feed = SubscriptionFeed(SceneService(FakeTransport()))
        feed.open()
        await feed.close()
        with pytest.raises(RuntimeError):
            feed.open()

    asyncio.run(run_test())


def test_stream_error_fails_the_feed():
    async def run_test():
        transport = FakeTransport()
        feed = SubscriptionFeed(SceneService(transport))
        feed.open()
        transport.push(node("Cube"))
        transport.push(RemoteOperationError("Subscription connection lost"))
        await settle()
        return feed

    feed = asyncio.run(run_test())
    assert feed.lifecycle.failed
    assert feed.lifecycle.error.message == "Subscription connection lost"
    assert not feed.is_open


def test_server_completion_closes_feed():
    async def run_test():
        transport = FakeTransport()
        feed = SubscriptionFeed(SceneService(transport))
        feed.open()
        transport.push(None)
        await settle()
        return feed

    feed = asyncio.run(run_test())
    assert feed.lifecycle.closed
    assert not feed.is_open


def test_handler_errors_do_not_stop_delivery():
    async def run_test():
        transport = FakeTransport()
        feed = SubscriptionFeed(SceneService(transport))
        seen = []

        def broken(_event):
            raise ValueError("bad handler")

        feed.register_event_handler(broken)
        feed.register_event_handler(seen.append)
        feed.open()
        transport.push(node("A"))
        transport.push(node("B"))
        await settle()
        await feed.close()
        return seen

    assert [e.node_name for e in asyncio.run(run_test())] == ["A", "B"]


def test_malformed_node_event_fails_the_feed():
    async def run_test():
        transport = FakeTransport()
        feed = SubscriptionFeed(SceneService(transport))
        seen = []
        feed.register_event_handler(seen.append)
        feed.open()
        transport.push({"nodeAdded": ["Cube"]})
        await settle()
        return feed, seen

    feed, seen = asyncio.run(run_test())
    assert seen == []
    assert feed.lifecycle.failed
    assert feed.lifecycle.error.message == "Malformed nodeAdded event"
