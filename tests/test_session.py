import asyncio
from pathlib import Path

from fakes import RecordingAgent
from sidebar_agent.channel import MessageChannel
from sidebar_agent.core import IDLE, ConsumerSession
from sidebar_agent.models import PendingItem, ReadyQuery
from sidebar_agent.providers import DEFAULT_PROVIDERS
from sidebar_agent.store import PendingRepository, PendingStore, VolatileCache

ITEM = PendingItem(prompt="Summarize: https://example.com", target=DEFAULT_PROVIDERS["chatgpt"])


def _responder(repository: PendingRepository, queries: list):
    async def handler(message):
        if isinstance(message, ReadyQuery):
            queries.append(message)
            # 模拟跨进程往返
            await asyncio.sleep(0)
            return await repository.peek_and_clear()
        return None

    return handler


def test_all_three_paths_collapse_into_one_injection(tmp_path: Path) -> None:
    agent = RecordingAgent()
    queries = []

    async def scenario():
        store = PendingStore(tmp_path / "storage.json")
        producer = PendingRepository(store, VolatileCache())
        channel = MessageChannel()
        channel.register(_responder(producer, queries))
        session = ConsumerSession(PendingRepository(store), channel, agent)

        await producer.write(ITEM)
        # 启动握手、存储变更通知、直接读存储同时触发
        results = await asyncio.gather(session.start(), session.consume_from_store(), session.start())
        await session.wait_idle()
        return results, session, await store.get("pendingPrompt")

    results, session, remaining = asyncio.run(scenario())
    assert agent.items == [ITEM]
    assert [r is not None for r in results] == [True, False, False]
    assert len(queries) == 1
    assert remaining is None
    assert session.state == IDLE
    assert session.consuming is False


def test_change_notification_triggers_running_session(tmp_path: Path) -> None:
    agent = RecordingAgent()

    async def scenario():
        store = PendingStore(tmp_path / "storage.json")
        channel = MessageChannel()
        session = ConsumerSession(PendingRepository(store), channel, agent)
        await PendingRepository(store, VolatileCache()).write(ITEM)
        await asyncio.sleep(0)
        await session.wait_idle()
        return await store.get("pendingPrompt")

    remaining = asyncio.run(scenario())
    assert [i.prompt for i in agent.items] == [ITEM.prompt]
    assert remaining is None


def test_unloading_session_leaves_item_for_its_replacement(tmp_path: Path) -> None:
    dying_agent = RecordingAgent()
    next_agent = RecordingAgent()

    async def scenario():
        store = PendingStore(tmp_path / "storage.json")
        channel = MessageChannel()
        dying = ConsumerSession(PendingRepository(store), channel, dying_agent)

        await PendingRepository(store).write(ITEM)
        # 通知已排队，但在执行前页面开始卸载
        dying.mark_unloading()
        await asyncio.sleep(0)
        await dying.wait_idle()
        assert await store.get("pendingPrompt") is not None

        replacement = ConsumerSession(PendingRepository(store), channel, next_agent)
        return await dying.start(), await replacement.start()

    dying_result, replacement_result = asyncio.run(scenario())
    assert dying_agent.items == []
    assert dying_result is None
    assert next_agent.items == [ITEM]
    assert replacement_result.success


def test_startup_reads_store_when_producer_unreachable(tmp_path: Path) -> None:
    agent = RecordingAgent()

    async def scenario():
        store = PendingStore(tmp_path / "storage.json")
        await store.set("pendingPrompt", ITEM.to_dict())
        session = ConsumerSession(PendingRepository(store), MessageChannel(), agent)
        outcome = await session.start()
        return outcome, await store.get("pendingPrompt")

    outcome, remaining = asyncio.run(scenario())
    assert outcome.success
    assert agent.items == [ITEM]
    assert remaining is None


def test_startup_with_nothing_pending_is_a_noop(tmp_path: Path) -> None:
    agent = RecordingAgent()

    async def scenario():
        store = PendingStore(tmp_path / "storage.json")
        channel = MessageChannel()
        channel.register(_responder(PendingRepository(store, VolatileCache()), []))
        session = ConsumerSession(PendingRepository(store), channel, agent)
        return await session.start(), session

    outcome, session = asyncio.run(scenario())
    assert outcome is None
    assert agent.items == []
    assert session.consuming is False


def test_guard_is_released_after_failed_injection(tmp_path: Path) -> None:
    class ExplodingAgent:
        calls = 0

        async def inject(self, item):
            ExplodingAgent.calls += 1
            raise RuntimeError("page crashed")

    async def scenario():
        store = PendingStore(tmp_path / "storage.json")
        await store.set("pendingPrompt", ITEM.to_dict())
        session = ConsumerSession(PendingRepository(store), MessageChannel(), ExplodingAgent())
        try:
            await session.start()
        except RuntimeError:
            pass
        return session

    session = asyncio.run(scenario())
    assert ExplodingAgent.calls == 1
    assert session.consuming is False
    assert session.state == IDLE


def test_malformed_store_entry_does_not_break_the_session(tmp_path: Path) -> None:
    agent = RecordingAgent()

    async def scenario():
        store = PendingStore(tmp_path / "storage.json")
        session = ConsumerSession(PendingRepository(store), MessageChannel(), agent)
        await store.set("pendingPrompt", {"provider": {}})
        await asyncio.sleep(0)
        await session.wait_idle()
        await PendingRepository(store).write(ITEM)
        await asyncio.sleep(0)
        await session.wait_idle()
        return session

    session = asyncio.run(scenario())
    assert agent.items == [ITEM]
    assert session.state == IDLE
