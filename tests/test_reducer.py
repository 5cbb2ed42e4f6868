from dataclasses import replace

from sprintly.actions import Action, ActionType
from sprintly.importers import ImportBatch
from sprintly.models import (
    ACHIEVEMENT_FIRST_GOAL,
    ACHIEVEMENT_FIVE_TASKS,
    ACHIEVEMENT_SPRINT_MASTER,
    ACHIEVEMENT_TOTAL_FOCUS,
    Goal,
    Sprint,
    Task,
    TaskStatus,
    Theme,
)
from sprintly.reducer import apply_action, get_initial_state

TS = "2026-03-01T09:00:00"
LATER = "2026-03-02T18:30:00"


def _act(action_type, payload=None, ts=TS):
    return Action(action_type, payload, timestamp=ts)


def _goal(goal_id: str, name: str = "Goal") -> Goal:
    return Goal(id=goal_id, name=name, description="d", category="Estudos", deadline="2026-04-01")


def _task(task_id: str, goal_id: str, status: TaskStatus = TaskStatus.BACKLOG) -> Task:
    return Task(id=task_id, goal_id=goal_id, title=f"task-{task_id}", status=status)


def _unlocked_at(state, achievement_id):
    return state.find_achievement(achievement_id).unlocked_at


def _state_with(goals=(), tasks=()):
    state = get_initial_state()
    for g in goals:
        state = apply_action(state, _act(ActionType.ADD_META, g))
    for t in tasks:
        state = apply_action(state, _act(ActionType.ADD_TASK, t))
    return state


def test_initial_state_seeds_locked_catalog():
    state = get_initial_state()

    assert [a.id for a in state.achievements] == [
        ACHIEVEMENT_FIRST_GOAL,
        ACHIEVEMENT_FIVE_TASKS,
        ACHIEVEMENT_SPRINT_MASTER,
        ACHIEVEMENT_TOTAL_FOCUS,
    ]
    assert all(a.unlocked_at is None for a in state.achievements)
    assert state.pomodoro_remaining == 25 * 60
    assert state.points == 0
    assert state.level == 1
    assert state.settings.theme == Theme.LIGHT


def test_add_goal_appends_and_unlocks_first_goal_once():
    state = apply_action(get_initial_state(), _act(ActionType.ADD_META, _goal("g1")))
    assert [g.id for g in state.goals] == ["g1"]
    assert _unlocked_at(state, ACHIEVEMENT_FIRST_GOAL) == TS

    state = apply_action(state, _act(ActionType.ADD_META, _goal("g2"), ts=LATER))
    assert [g.id for g in state.goals] == ["g1", "g2"]
    assert _unlocked_at(state, ACHIEVEMENT_FIRST_GOAL) == TS


def test_add_goal_does_not_dedupe_ids():
    state = _state_with(goals=[_goal("g1"), _goal("g1", name="again")])
    assert [g.name for g in state.goals] == ["Goal", "again"]


def test_add_then_delete_restores_goal_list():
    before = _state_with(goals=[_goal("g1")])
    after = apply_action(before, _act(ActionType.ADD_META, _goal("g2")))
    after = apply_action(after, _act(ActionType.DELETE_META, "g2"))

    assert after.goals == before.goals


def test_update_goal_replaces_matching_record_only():
    state = _state_with(goals=[_goal("g1"), _goal("g2")])
    updated = replace(state.goals[0], name="Renamed", progress=40)

    state = apply_action(state, _act(ActionType.UPDATE_META, updated))

    assert state.goals[0].name == "Renamed"
    assert state.goals[0].progress == 40
    assert state.goals[1].name == "Goal"


def test_update_unknown_goal_is_noop():
    state = _state_with(goals=[_goal("g1")])
    assert apply_action(state, _act(ActionType.UPDATE_META, _goal("missing"))) is state


def test_delete_goal_cascades_only_to_its_tasks():
    state = _state_with(
        goals=[_goal("g1"), _goal("g2")],
        tasks=[_task("t1", "g1"), _task("t2", "g2"), _task("t3", "g1"), _task("t4", "orphan")],
    )

    state = apply_action(state, _act(ActionType.DELETE_META, "g1"))

    assert [g.id for g in state.goals] == ["g2"]
    assert [t.id for t in state.tasks] == ["t2", "t4"]
    assert "g1" not in state.task_index
    assert state.task_index["g2"] == ("t2",)


def test_task_reassigned_to_other_goal_survives_old_goal_delete():
    state = _state_with(goals=[_goal("g1"), _goal("g2")], tasks=[_task("t1", "g1")])
    state = apply_action(state, _act(ActionType.UPDATE_TASK, _task("t1", "g2")))

    state = apply_action(state, _act(ActionType.DELETE_META, "g1"))

    assert [t.id for t in state.tasks] == ["t1"]
    assert state.task_index == {"g2": ("t1",)}


def test_delete_task_removes_by_id():
    state = _state_with(goals=[_goal("g1")], tasks=[_task("t1", "g1"), _task("t2", "g1")])
    state = apply_action(state, _act(ActionType.DELETE_TASK, "t1"))

    assert [t.id for t in state.tasks] == ["t2"]
    assert state.task_index["g1"] == ("t2",)


def test_move_task_to_done_stamps_and_away_clears():
    state = _state_with(goals=[_goal("g1")], tasks=[_task("t1", "g1")])

    done = apply_action(state, _act(ActionType.MOVE_TASK, {"task_id": "t1", "new_status": "done"}))
    assert done.find_task("t1").status == TaskStatus.DONE
    assert done.find_task("t1").completed_at == TS

    back = apply_action(done, _act(ActionType.MOVE_TASK, {"task_id": "t1", "new_status": "todo"}, ts=LATER))
    assert back.find_task("t1").status == "todo"
    assert back.find_task("t1").completed_at is None


def test_move_unknown_task_is_noop():
    state = _state_with(goals=[_goal("g1")], tasks=[_task("t1", "g1")])
    moved = apply_action(state, _act(ActionType.MOVE_TASK, {"task_id": "nope", "new_status": "done"}))
    assert moved is state


def test_five_tasks_achievement_unlocks_at_fifth_done_and_stays():
    tasks = [_task(f"t{i}", "g1") for i in range(6)]
    state = _state_with(goals=[_goal("g1")], tasks=tasks)

    for i in range(4):
        state = apply_action(state, _act(ActionType.MOVE_TASK, {"task_id": f"t{i}", "new_status": "done"}))
    assert _unlocked_at(state, ACHIEVEMENT_FIVE_TASKS) is None

    state = apply_action(state, _act(ActionType.MOVE_TASK, {"task_id": "t4", "new_status": "done"}, ts=LATER))
    assert _unlocked_at(state, ACHIEVEMENT_FIVE_TASKS) == LATER

    state = apply_action(state, _act(ActionType.MOVE_TASK, {"task_id": "t0", "new_status": "doing"}))
    state = apply_action(state, _act(ActionType.MOVE_TASK, {"task_id": "t1", "new_status": "backlog"}))
    assert _unlocked_at(state, ACHIEVEMENT_FIVE_TASKS) == LATER


def test_start_sprint_sets_pointer_and_unlocks():
    sprint = Sprint(id="s1", name="Week 1", duration_days=7, started_at=TS, ends_at=LATER)
    state = apply_action(get_initial_state(), _act(ActionType.START_SPRINT, sprint))

    assert state.sprints == [sprint]
    assert state.active_sprint == sprint
    assert _unlocked_at(state, ACHIEVEMENT_SPRINT_MASTER) == TS


def test_end_sprint_clears_pointer_even_for_other_sprint():
    s1 = Sprint(id="s1", name="Old", active=True)
    s2 = Sprint(id="s2", name="Current", active=True)
    state = apply_action(get_initial_state(), _act(ActionType.START_SPRINT, s1))
    state = apply_action(state, _act(ActionType.START_SPRINT, s2))

    state = apply_action(state, _act(ActionType.END_SPRINT, "s1"))

    assert state.active_sprint is None
    assert [s.active for s in state.sprints] == [False, True]
    assert state.sprints[0].name == "Old"


def test_pomodoro_start_break_and_stop():
    state = apply_action(get_initial_state(), _act(ActionType.START_POMODORO))
    assert state.pomodoro_active is True
    assert state.pomodoro_is_break is False
    assert state.pomodoro_remaining == 1500

    state = apply_action(state, _act(ActionType.START_POMODORO, {"is_break": True}))
    assert state.pomodoro_is_break is True
    assert state.pomodoro_remaining == 300

    state = apply_action(state, _act(ActionType.STOP_POMODORO))
    assert state.pomodoro_active is False
    assert state.pomodoro_is_break is False
    assert state.pomodoro_remaining == 1500


def test_tick_counts_focus_and_stops_at_zero():
    state = replace(get_initial_state(), pomodoro_active=True, pomodoro_remaining=2)

    state = apply_action(state, _act(ActionType.TICK_POMODORO))
    assert state.pomodoro_remaining == 1
    assert state.pomodoro_active is True
    assert state.pomodoro_total_focus == 1

    state = apply_action(state, _act(ActionType.TICK_POMODORO))
    assert state.pomodoro_remaining == 0
    assert state.pomodoro_active is False
    assert state.pomodoro_total_focus == 2

    state = apply_action(state, _act(ActionType.TICK_POMODORO))
    assert state.pomodoro_remaining == 0


def test_tick_on_break_does_not_count_focus():
    state = replace(get_initial_state(), pomodoro_active=True, pomodoro_is_break=True, pomodoro_remaining=300)
    state = apply_action(state, _act(ActionType.TICK_POMODORO))

    assert state.pomodoro_remaining == 299
    assert state.pomodoro_total_focus == 0


def test_tick_unlocks_total_focus_at_two_hours():
    state = replace(get_initial_state(), pomodoro_active=True, pomodoro_total_focus=7198)

    state = apply_action(state, _act(ActionType.TICK_POMODORO))
    assert _unlocked_at(state, ACHIEVEMENT_TOTAL_FOCUS) is None

    state = apply_action(state, _act(ActionType.TICK_POMODORO, ts=LATER))
    assert state.pomodoro_total_focus == 7200
    assert _unlocked_at(state, ACHIEVEMENT_TOTAL_FOCUS) == LATER


def test_add_points_recomputes_level():
    state = get_initial_state()
    totals = []
    for amount in (10, 85, 5, 150):
        state = apply_action(state, _act(ActionType.ADD_POINTS, amount))
        totals.append(state.points)
        assert state.level == state.points // 100 + 1

    assert totals == [10, 95, 100, 250]
    assert state.level == 3


def test_unlock_achievement_is_idempotent_and_ignores_unknown():
    state = apply_action(get_initial_state(), _act(ActionType.UNLOCK_ACHIEVEMENT, ACHIEVEMENT_TOTAL_FOCUS))
    assert _unlocked_at(state, ACHIEVEMENT_TOTAL_FOCUS) == TS

    again = apply_action(state, _act(ActionType.UNLOCK_ACHIEVEMENT, ACHIEVEMENT_TOTAL_FOCUS, ts=LATER))
    assert again is state

    assert apply_action(state, _act(ActionType.UNLOCK_ACHIEVEMENT, "nope")) is state


def test_import_data_fills_missing_ids_and_keeps_orphans():
    state = _state_with(goals=[_goal("g1")])
    batch = ImportBatch(
        goals=[Goal(name="No id"), _goal("g2")],
        tasks=[Task(title="orphan", goal_id="ghost"), _task("t9", "g2")],
    )

    state = apply_action(state, _act(ActionType.IMPORT_DATA, batch))

    assert len(state.goals) == 3
    assert all(g.id for g in state.goals)
    assert state.goals[2].id == "g2"
    assert all(t.id for t in state.tasks)
    assert state.tasks[0].goal_id == "ghost"
    assert state.task_index["g2"] == ("t9",)


def test_import_data_accepts_plain_dict_payload():
    state = apply_action(
        get_initial_state(),
        _act(ActionType.IMPORT_DATA, {"goals": [_goal("g1")], "tasks": [_task("t1", "g1")]}),
    )
    assert [g.id for g in state.goals] == ["g1"]
    assert state.tasks_for_goal("g1")[0].id == "t1"


def test_select_goal_sets_and_clears():
    state = apply_action(get_initial_state(), _act(ActionType.SET_SELECTED_META, "g1"))
    assert state.selected_goal_id == "g1"
    state = apply_action(state, _act(ActionType.SET_SELECTED_META, None))
    assert state.selected_goal_id is None


def test_update_settings_changes_only_given_fields():
    before = get_initial_state().settings
    state = apply_action(get_initial_state(), _act(ActionType.UPDATE_SETTINGS, {"theme": "dark"}))
    after = state.settings

    assert after.theme == Theme.DARK
    assert after.pomodoro_sound == before.pomodoro_sound
    assert after.auto_start_breaks == before.auto_start_breaks
    assert after.show_completed_tasks == before.show_completed_tasks
    assert after.auto_update_progress == before.auto_update_progress


def test_set_initial_state_returns_payload_verbatim():
    replacement = _state_with(goals=[_goal("g9")])
    assert apply_action(get_initial_state(), _act(ActionType.SET_INITIAL_STATE, replacement)) is replacement


def test_unknown_action_returns_same_state():
    state = get_initial_state()
    assert apply_action(state, _act("RENAME_EVERYTHING", {"x": 1})) is state


def test_transitions_do_not_mutate_input_state():
    state = _state_with(goals=[_goal("g1")], tasks=[_task("t1", "g1")])
    snapshot_tasks = list(state.tasks)
    snapshot_achievements = list(state.achievements)

    apply_action(state, _act(ActionType.MOVE_TASK, {"task_id": "t1", "new_status": "done"}))
    apply_action(state, _act(ActionType.DELETE_META, "g1"))
    apply_action(state, _act(ActionType.UNLOCK_ACHIEVEMENT, ACHIEVEMENT_TOTAL_FOCUS))

    assert state.tasks == snapshot_tasks
    assert state.tasks[0].status == TaskStatus.BACKLOG
    assert state.achievements == snapshot_achievements
    assert state.task_index == {"g1": ("t1",)}
