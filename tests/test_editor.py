import asyncio

import pytest

from conftest import FakeTransport, settle

from pyscenedit.editor import EditorSession
from pyscenedit.errors import EditorNotReady, RemoteOperationError
from pyscenedit.lifecycle import RequestState, ViewKind
from pyscenedit.operations import ObjectRef, ProjectInfo, SceneService
from pyscenedit.project import ProjectLoader
from pyscenedit.settings import Settings

PROJECT = {"project": {"name": "Aw Yeah"}}


def test_editor_is_gated_while_project_pending():
    async def run_test():
        transport = FakeTransport()
        session = EditorSession(transport=transport)
        start = asyncio.create_task(session.start())
        await settle()
        assert session.describe().kind is ViewKind.LOADING
        assert not session.ready
        with pytest.raises(EditorNotReady):
            session.viewport
        with pytest.raises(EditorNotReady):
            session.drop_asset("Cube")
        transport.release("project", PROJECT)
        await start
        assert session.ready
        assert session.describe().text == "Aw Yeah"
        await session.close()
        return transport

    transport = asyncio.run(run_test())
    # the drop attempts before load never reached the service
    assert [c[0] for c in transport.calls] == ["project"]


def test_failed_project_shows_exact_message():
    async def run_test():
        transport = FakeTransport({"project": RemoteOperationError("project not found")})
        session = EditorSession(transport=transport)
        lifecycle = await session.start()
        view = session.describe()
        with pytest.raises(EditorNotReady):
            session.palette
        await session.close()
        return lifecycle, view

    lifecycle, view = asyncio.run(run_test())
    assert lifecycle.state is RequestState.FAILED
    assert view.kind is ViewKind.ERROR
    assert view.text == "project not found"


def test_cube_drop_scenario():
    async def run_test():
        transport = FakeTransport({"project": PROJECT})
        session = EditorSession(transport=transport)
        await session.start()
        assert session.viewport_status() == "Viewport"
        op = session.drop_asset("Cube")
        assert op.create.is_pending and op.render.is_pending
        assert session.viewport_status() == "Loading..."
        await settle()
        transport.release("createBasicShape", {"createBasicShape": True})
        transport.release("render", {"build": True, "render": True})
        await op.wait()
        status = session.viewport_status()
        await session.close()
        return transport, op, status

    transport, op, status = asyncio.run(run_test())
    assert transport.calls[1:] == [
        ("createBasicShape", {"shape": "Cube"}),
        ("render", {"batches": 8}),
    ]
    assert op.payload.asset_id == 2
    assert status == "Render finished"


def test_light_drop_on_viewport_dispatches_nothing():
    async def run_test():
        transport = FakeTransport({"project": PROJECT})
        session = EditorSession(transport=transport)
        await session.start()
        op = session.drop_asset("Point Light")
        await settle()
        await session.close()
        return transport, op

    transport, op = asyncio.run(run_test())
    assert op is None
    assert [c[0] for c in transport.calls] == ["project"]


def test_render_after_create_setting_selects_policy():
    settings = Settings()
    settings.render_after_create = True
    session = EditorSession(settings, transport=FakeTransport())
    assert session.sequencer.policy.value == "after_create"


def test_create_project_mutation():
    async def run_test():
        transport = FakeTransport({"project": PROJECT, "newProject": {"newProject": True}})
        session = EditorSession(transport=transport)
        await session.start()
        request = session.create_project("Second")
        assert request.is_pending
        await settle()
        await session.close()
        return transport, request

    transport, request = asyncio.run(run_test())
    assert ("newProject", {"name": "Second"}) in transport.calls
    assert request.result == ObjectRef(True)


def test_close_owns_only_its_own_transport():
    async def run_test():
        transport = FakeTransport({"project": PROJECT})
        session = EditorSession(transport=transport)
        await session.start()
        await session.close()
        return transport, session

    transport, session = asyncio.run(run_test())
    assert not transport.closed
    assert not session.ready
    with pytest.raises(EditorNotReady):
        session.viewport


def test_loader_reload_creates_fresh_lifecycle():
    async def run_test():
        transport = FakeTransport({"project": RemoteOperationError("project not found")})
        loader = ProjectLoader(SceneService(transport))
        first = await loader.load()
        transport.responses["project"] = PROJECT
        await loader.reload()
        return first, loader

    first, loader = asyncio.run(run_test())
    assert first.failed
    assert loader.lifecycle is not first
    assert loader.require_project() == ProjectInfo("Aw Yeah")
