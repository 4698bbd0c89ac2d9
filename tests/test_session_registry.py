from __future__ import annotations

from learnkids.features.session import Bound, Session, SessionRegistry, Temporary


def test_promotion_without_id_or_pending_sessions_is_a_miss(clock) -> None:
    registry = SessionRegistry(clock=clock)
    assert registry.promote_session("") == (None, False, None)
    assert registry.promote_session(None) == (None, False, None)
    assert registry.promote_session("client-1") == (None, False, None)
    assert len(registry) == 0


def test_newest_temporary_session_wins(clock) -> None:
    registry = SessionRegistry(clock=clock)
    older = registry.open_temporary()
    clock.advance(1)
    newer = registry.open_temporary()
    pending_key = newer.key

    result = registry.promote_session("client-1")

    assert result.promoted
    assert result.session is newer
    assert result.previous_key == pending_key
    assert newer.state == Bound("client-1")
    assert newer.key == "client-1"
    assert pending_key not in registry
    assert registry.temporary_keys() == [older.key]


def test_same_timestamp_falls_back_to_arrival_order(clock) -> None:
    registry = SessionRegistry(clock=clock)
    first = registry.open_temporary()
    second = registry.open_temporary()
    assert isinstance(first.state, Temporary) and isinstance(second.state, Temporary)
    assert first.state.created_at == second.state.created_at

    assert registry.promote_session("client-1").session is second


def test_existing_id_is_returned_without_promotion(clock) -> None:
    registry = SessionRegistry(clock=clock)
    registry.open_temporary()
    bound = registry.promote_session("client-1").session
    spare = registry.open_temporary()

    again = registry.promote_session("client-1")

    assert again == (bound, False, None)
    assert registry.temporary_keys() == [spare.key]


def test_remove_is_identity_checked(clock) -> None:
    registry = SessionRegistry(clock=clock)
    original = registry.add_session("client-1", Session(state=Bound("client-1")))
    replacement = registry.add_session("client-1", Session(state=Bound("client-1")))

    assert registry.remove_session(original) is False
    assert registry.get("client-1") is replacement
    assert registry.remove_session(replacement) is True
    assert registry.remove_session(replacement) is False
    assert len(registry) == 0


def test_promoted_session_is_removed_under_its_new_key(clock) -> None:
    registry = SessionRegistry(clock=clock)
    session = registry.open_temporary()
    registry.promote_session("client-1")

    assert registry.remove_session(session)
    assert registry.keys() == []


def test_add_session_fills_timestamps(clock) -> None:
    registry = SessionRegistry(clock=clock)
    session = registry.add_session("k", Session(state=Bound("k")))
    assert session.created_at == clock.now
    assert session.last_seen_at == clock.now
    assert session.key == "k"


def test_touch_and_cleanup_stale(clock) -> None:
    registry = SessionRegistry(clock=clock)
    idle = registry.open_temporary()
    active = registry.open_temporary()
    clock.advance(30)
    assert registry.touch_session(active)
    clock.advance(40)

    assert registry.cleanup_stale(60) == 1
    assert idle.key not in registry
    assert active.key in registry
    assert registry.touch_session(idle) is False
