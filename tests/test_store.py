import threading

from sprintly.actions import Action, ActionType
from sprintly.exceptions import StateError
from sprintly.models import Goal
from sprintly.reducer import get_initial_state
from sprintly.store import Store


def test_dispatch_updates_state_and_stamps_timestamp():
    seen = []
    store = Store()
    store.subscribe(lambda state, action: seen.append(action))

    state = store.dispatch(Action(ActionType.ADD_META, Goal(id="g1", name="A")))

    assert store.state is state
    assert [g.id for g in state.goals] == ["g1"]
    assert seen[0].timestamp
    assert state.achievements[0].unlocked_at == seen[0].timestamp


def test_unchanged_state_skips_subscribers_and_persist():
    calls = []
    store = Store(persist=lambda s: calls.append("persist"))
    store.subscribe(lambda s, a: calls.append("notify"))

    store.dispatch(Action(ActionType.DELETE_TASK, "missing"))

    assert calls == []


def test_persist_called_with_new_state():
    saved = []
    store = Store(persist=saved.append)
    store.dispatch(Action(ActionType.ADD_POINTS, 5))

    assert saved[-1].points == 5


def test_failing_subscriber_and_persist_do_not_undo_transition():
    def bad_persist(state):
        raise StateError("disk full")

    def bad_subscriber(state, action):
        raise RuntimeError("boom")

    store = Store(persist=bad_persist)
    store.subscribe(bad_subscriber)

    state = store.dispatch(Action(ActionType.ADD_POINTS, 10))

    assert state.points == 10
    assert store.state.points == 10


def test_unsubscribe_stops_notifications():
    seen = []
    store = Store()
    unsubscribe = store.subscribe(lambda s, a: seen.append(a.type))

    store.dispatch(Action(ActionType.ADD_POINTS, 1))
    unsubscribe()
    unsubscribe()
    store.dispatch(Action(ActionType.ADD_POINTS, 1))

    assert seen == [ActionType.ADD_POINTS]


def test_reset_restores_defaults():
    store = Store()
    store.dispatch(Action(ActionType.ADD_POINTS, 300))

    state = store.reset()

    assert state == get_initial_state()


def test_concurrent_dispatch_loses_no_updates():
    store = Store()

    def worker():
        for _ in range(50):
            store.dispatch(Action(ActionType.ADD_POINTS, 1))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.state.points == 200
    assert store.state.level == 3


def test_guard_drops_action_without_side_effects():
    saved = []
    store = Store(persist=saved.append)
    before = store.state

    state = store.dispatch(Action(ActionType.ADD_POINTS, 5), when=lambda s: s.points > 0)

    assert state is before
    assert saved == []

    store.dispatch(Action(ActionType.ADD_POINTS, 5), when=lambda s: s.points == 0)
    assert store.state.points == 5
