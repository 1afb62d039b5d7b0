import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


def operation_name(document):
    for name in ("createBasicShape", "newProject", "render", "project"):
        if name in document:
            return name
    return "unknown"


class FakeTransport:
    """Stand-in for GraphQLTransport.

    Operations listed in ``responses`` resolve at once (an Exception value is
    raised instead). Anything else waits until ``release`` or ``fail`` is
    called for that operation. Subscription events are fed with ``push``.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.waiting = []
        self.subscriptions = 0
        self.closed = False
        self._events = None

    async def execute(self, document, variables=None):
        name = operation_name(document)
        self.calls.append((name, variables))
        if name in self.responses:
            value = self.responses[name]
            if isinstance(value, Exception):
                raise value
            return value
        fut = asyncio.get_running_loop().create_future()
        self.waiting.append((name, fut))
        return await fut

    def _take(self, name):
        for i, (n, fut) in enumerate(self.waiting):
            if n == name:
                del self.waiting[i]
                return fut
        raise AssertionError(f"no pending {name} call")

    def release(self, name, data):
        self._take(name).set_result(data)

    def fail(self, name, exc):
        self._take(name).set_exception(exc)

    @property
    def events(self):
        if self._events is None:
            self._events = asyncio.Queue()
        return self._events

    def push(self, data):
        self.events.put_nowait(data)

    async def subscribe(self, document, variables=None):
        self.subscriptions += 1
        while True:
            item = await self.events.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def aclose(self):
        self.closed = True


async def settle(rounds=5):
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def transport():
    return FakeTransport()
