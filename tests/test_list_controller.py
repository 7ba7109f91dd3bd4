"""Tests for catalog_engine.list_controller.IncrementalListController."""

import asyncio

import pytest

from catalog_engine.exceptions import PageLoadError
from catalog_engine.list_controller import BUTTON, VISIBILITY, IncrementalListController, ListState
from catalog_engine.models import Connection, PageInfo


def page(ids, end_cursor=None, has_next=False):
    return Connection(
        edges=[{"node": {"id": i, "title": f"Product {i}"}} for i in ids],
        page_info=PageInfo(has_next_page=has_next, end_cursor=end_cursor),
    )


class FakeLoader:
    """Serves pages by cursor and records every requested cursor."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    async def __call__(self, after):
        self.calls.append(after)
        result = self.pages[after]
        if isinstance(result, list):
            result = result.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def ids(controller):
    return [p["id"] for p in controller.items]


def test_reset_loads_first_page():
    loader = FakeLoader({None: page([1, 2], "c1", True)})
    controller = IncrementalListController()

    merged = asyncio.run(controller.reset(loader, key="shoes"))

    assert merged is True
    assert ids(controller) == [1, 2]
    assert controller.state is ListState.IDLE
    assert controller.key == "shoes"
    assert controller.generation == 1


def test_pages_are_requested_in_cursor_order():
    loader = FakeLoader({
        None: page([1, 2], "c1", True),
        "c1": page([3, 4], "c2", True),
        "c2": page([5], "c3", False),
    })
    controller = IncrementalListController(auto_load_limit=100)

    async def scenario():
        await controller.reset(loader)
        while await controller.load_more(VISIBILITY):
            pass

    asyncio.run(scenario())

    assert loader.calls == [None, "c1", "c2"]
    assert ids(controller) == [1, 2, 3, 4, 5]
    assert controller.state is ListState.EXHAUSTED
    assert controller.fully_loaded


def test_overlapping_pages_are_deduplicated():
    loader = FakeLoader({"c1": page([2, 3], "c2", False)})
    controller = IncrementalListController(loader)
    controller.hydrate(page([1, 2], "c1", True))

    asyncio.run(controller.load_more())

    assert ids(controller) == [1, 2, 3]
    assert controller.duplicates_dropped == 1


def test_concurrent_triggers_send_one_request():
    calls = []

    async def scenario():
        release = asyncio.Event()

        async def loader(after):
            calls.append(after)
            await release.wait()
            return page([3, 4], "c2", True)

        controller = IncrementalListController(loader)
        controller.hydrate(page([1, 2], "c1", True))

        first = asyncio.create_task(controller.load_more(VISIBILITY))
        await asyncio.sleep(0)
        assert controller.state is ListState.FETCHING
        second = await controller.load_more(BUTTON)
        release.set()
        return controller, await first, second

    controller, first, second = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert calls == ["c1"]
    assert ids(controller) == [1, 2, 3, 4]


def test_repeated_cursor_is_not_requested_twice():
    # The provider answers with the same end cursor it was asked for
    loader = FakeLoader({"c1": page([3], "c1", True)})
    controller = IncrementalListController(loader)
    controller.hydrate(page([1, 2], "c1", True))

    async def scenario():
        assert await controller.load_more() is True
        assert await controller.load_more() is False

    asyncio.run(scenario())
    assert loader.calls == ["c1"]
    assert "c1" in controller.requested


def test_failure_allows_retry():
    loader = FakeLoader({"c1": [PageLoadError("connection reset"), page([3], None, False)]})
    controller = IncrementalListController(loader)
    controller.hydrate(page([1, 2], "c1", True))

    assert asyncio.run(controller.load_more()) is False
    assert controller.state is ListState.ERROR
    assert controller.show_retry
    assert controller.error == "connection reset"
    assert "c1" not in controller.requested
    assert ids(controller) == [1, 2]

    assert asyncio.run(controller.load_more()) is True
    assert controller.state is ListState.EXHAUSTED
    assert controller.error is None
    assert ids(controller) == [1, 2, 3]
    assert loader.calls == ["c1", "c1"]


def test_unexpected_loader_error_sets_error_state():
    loader = FakeLoader({"c1": RuntimeError("boom")})
    controller = IncrementalListController(loader)
    controller.hydrate(page([1], "c1", True))

    assert asyncio.run(controller.load_more()) is False
    assert controller.state is ListState.ERROR
    assert controller.error == "boom"


def test_failed_first_page():
    loader = FakeLoader({None: PageLoadError("provider down", "provider")})
    controller = IncrementalListController()

    assert asyncio.run(controller.reset(loader)) is False
    assert controller.state is ListState.ERROR
    assert controller.items == []


def test_stale_response_is_dropped_after_reset():
    async def scenario():
        release = asyncio.Event()

        async def old_loader(after):
            if after is None:
                return page([1, 2], "c1", True)
            await release.wait()
            return page([99], "old", True)

        controller = IncrementalListController()
        await controller.reset(old_loader, key="price-asc")

        pending = asyncio.create_task(controller.load_more())
        await asyncio.sleep(0)

        await controller.reset(FakeLoader({None: page([5], None, False)}), key="price-desc")
        release.set()
        return controller, await pending

    controller, stale_result = asyncio.run(scenario())

    assert stale_result is False
    assert ids(controller) == [5]
    assert controller.key == "price-desc"
    assert controller.generation == 2
    assert controller.state is ListState.EXHAUSTED


def test_stale_failure_is_dropped_after_reset():
    async def scenario():
        release = asyncio.Event()

        async def old_loader(after):
            await release.wait()
            raise PageLoadError("timeout")

        controller = IncrementalListController(old_loader)
        controller.hydrate(page([1], "c1", True))
        pending = asyncio.create_task(controller.load_more())
        await asyncio.sleep(0)

        controller.hydrate(page([7], None, False), key="new")
        release.set()
        await pending
        return controller

    controller = asyncio.run(scenario())

    assert controller.state is ListState.EXHAUSTED
    assert controller.error is None
    assert ids(controller) == [7]


def test_visibility_trigger_stops_at_auto_load_limit():
    loader = FakeLoader({
        "c1": page([3, 4], "c2", True),
        "c2": page([5, 6], "c3", True),
    })
    controller = IncrementalListController(loader, auto_load_limit=4)
    controller.hydrate(page([1, 2], "c1", True))

    assert controller.should_auto_load
    assert not controller.show_load_more_button
    assert asyncio.run(controller.load_more(VISIBILITY)) is True

    assert not controller.should_auto_load
    assert controller.show_load_more_button
    assert asyncio.run(controller.load_more(VISIBILITY)) is False
    assert loader.calls == ["c1"]

    assert asyncio.run(controller.load_more(BUTTON)) is True
    assert ids(controller) == [1, 2, 3, 4, 5, 6]


def test_exhausted_list_does_not_request():
    loader = FakeLoader({})
    controller = IncrementalListController(loader)
    controller.hydrate(page([1, 2], None, False))

    assert controller.state is ListState.EXHAUSTED
    assert asyncio.run(controller.load_more()) is False
    assert loader.calls == []


def test_load_more_without_loader_raises():
    controller = IncrementalListController()
    controller.hydrate(page([1], "c1", True))
    with pytest.raises(RuntimeError):
        asyncio.run(controller.load_more())


def test_to_connection():
    controller = IncrementalListController()
    controller.hydrate(page([1, 2], "c1", True))
    connection = controller.to_connection()
    assert [n["id"] for n in connection.nodes()] == [1, 2]
    assert connection.page_info.end_cursor == "c1"


def test_failed_first_page_can_be_retried():
    loader = FakeLoader({None: [PageLoadError("provider down", "provider"), page([1, 2], "c1", True)]})
    controller = IncrementalListController()

    async def scenario():
        assert await controller.reset(loader) is False
        assert controller.show_retry
        return await controller.load_more(BUTTON)

    assert asyncio.run(scenario()) is True
    assert loader.calls == [None, None]
    assert ids(controller) == [1, 2]
    assert controller.state is ListState.IDLE
    assert controller.error is None


def test_failed_first_page_retry_can_fail_again():
    loader = FakeLoader({None: [PageLoadError("down"), PageLoadError("still down"), page([1], None, False)]})
    controller = IncrementalListController()

    async def scenario():
        await controller.reset(loader)
        assert await controller.load_more() is False
        assert controller.error == "still down"
        return await controller.load_more()

    assert asyncio.run(scenario()) is True
    assert loader.calls == [None, None, None]
    assert controller.state is ListState.EXHAUSTED
