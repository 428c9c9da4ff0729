import asyncio

from termstream.enums import RunKind, StreamState
from termstream.services.sessions import SessionRegistry


def test_sessions_are_independent(fake_source) -> None:
    async def scenario():
        registry = SessionRegistry()
        first = registry.open(RunKind.file, fake_source([b"\xd0"]))
        second = registry.open(RunKind.command, fake_source([b"\xb9ok"]))
        await first.wait()
        await second.wait()
        return first, second

    first, second = asyncio.run(scenario())
    # Bytes never leak between sessions' buffers.
    assert first.view.transcript == "�"
    assert second.view.transcript == "�ok"
    assert first.state == StreamState.done
    assert second.state == StreamState.done


def test_cancelled_session_ends_relay_without_end_sentinel(fake_source) -> None:
    source = fake_source([b"tick\n"], stall=True)

    async def scenario():
        registry = SessionRegistry()
        session = registry.open(RunKind.command, source)
        received = []
        async for text in session.fragments():
            received.append(text)
            registry.cancel(session.id)
        await session.wait()
        return session, received

    session, received = asyncio.run(scenario())
    assert received == ["tick\n"]
    assert session.state == StreamState.cancelled
    assert session.view.ended is False
    assert source.closed


def test_registry_keeps_bounded_history(fake_source) -> None:
    async def scenario():
        registry = SessionRegistry(history=2)
        sessions = [registry.open(RunKind.command, fake_source([b"x"])) for _ in range(4)]
        for session in sessions:
            await session.wait()
        await asyncio.sleep(0)
        return registry, sessions

    registry, sessions = asyncio.run(scenario())
    assert [s.id for s in registry.list()] == [s.id for s in sessions[-2:]]
