from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from resource_kit.actions import Completed, Failed, ResourceLoadingStarted, ResourceReceived, ResultEntry
from resource_kit.model import FRESH_RESOURCE, NULL_RESOURCE, ResourceEntry, ResourceType
from resource_kit.reducer import get_resource_entry, resources_reducer


TASK = ResourceType("Task")
PROJECT = ResourceType("Project")


def _started(*references):
    return ResourceLoadingStarted(start_time=1.0, references=tuple(references))


def _received(*pairs):
    return ResourceReceived(
        start_time=1.0,
        finish_time=2.0,
        result_entries=tuple(ResultEntry(reference, result) for reference, result in pairs),
    )


entries = st.builds(
    ResourceEntry,
    loading=st.booleans(),
    outdated=st.booleans(),
    error=st.none() | st.just(RuntimeError("old failure")),
    data=st.none() | st.integers(),
)


def test_unknown_reference_reads_null() -> None:
    assert get_resource_entry({}, TASK.ref("missing")) is NULL_RESOURCE
    assert get_resource_entry(None, TASK.ref("missing")) is NULL_RESOURCE
    assert get_resource_entry({"Task": {}}, TASK.ref("missing")) is NULL_RESOURCE


def test_initial_state_is_empty() -> None:
    assert resources_reducer(None, object()) == {}


def test_unknown_action_returns_same_state() -> None:
    state = {"Task": {"t1": FRESH_RESOURCE}}
    assert resources_reducer(state, {"type": "something else"}) is state


def test_loading_started_keeps_data_and_error() -> None:
    error = RuntimeError("previous")
    state = {"Task": {"t1": ResourceEntry(loading=False, outdated=True, error=error, data="old")}}

    state = resources_reducer(state, _started(TASK.ref("t1")))

    entry = get_resource_entry(state, TASK.ref("t1"))
    assert entry == ResourceEntry(loading=True, outdated=False, error=error, data="old")


def test_loading_started_creates_entries_from_null() -> None:
    state = resources_reducer(None, _started(TASK.ref("t1"), TASK.ref("t2")))

    for key in ("t1", "t2"):
        assert get_resource_entry(state, TASK.ref(key)) == ResourceEntry(loading=True, outdated=False)


@given(prior=entries, value=st.integers())
def test_started_then_completed_is_fresh_regardless_of_prior(prior: ResourceEntry, value: int) -> None:
    reference = TASK.ref("t1")
    state = {"Task": {"t1": prior}}

    state = resources_reducer(state, _started(reference))
    state = resources_reducer(state, _received((reference, Completed(value))))

    assert get_resource_entry(state, reference) == ResourceEntry(
        loading=False, outdated=False, error=None, data=value
    )


def test_error_result_keeps_stale_data() -> None:
    reference = TASK.ref("t1")
    error = RuntimeError("network down")
    state = resources_reducer(None, _started(reference))
    state = resources_reducer(state, _received((reference, Completed("good"))))
    state = resources_reducer(state, _started(reference))

    state = resources_reducer(state, _received((reference, Failed(error))))

    entry = get_resource_entry(state, reference)
    assert entry.loading is False
    assert entry.error is error
    assert entry.data == "good"


def test_success_clears_previous_error() -> None:
    reference = TASK.ref("t1")
    state = resources_reducer(None, _received((reference, Failed(RuntimeError("x")))))

    state = resources_reducer(state, _received((reference, Completed(5))))

    assert get_resource_entry(state, reference).error is None
    assert get_resource_entry(state, reference).data == 5


def test_received_without_prior_entry_is_based_on_fresh() -> None:
    reference = PROJECT.ref("a")

    state = resources_reducer(None, _received((reference, Completed({"id": "a"}))))

    assert get_resource_entry(state, reference) == ResourceEntry(
        loading=False, outdated=False, data={"id": "a"}
    )


def test_unrelated_entries_are_preserved() -> None:
    untouched_type = {"p1": FRESH_RESOURCE}
    sibling = ResourceEntry(loading=False, outdated=False, data="sibling")
    state = {"Project": untouched_type, "Task": {"t2": sibling}}

    next_state = resources_reducer(state, _started(TASK.ref("t1")))

    assert next_state is not state
    assert next_state["Project"] is untouched_type
    assert next_state["Task"]["t2"] is sibling
    # The prior state is not mutated.
    assert "t1" not in state["Task"]


@given(keys=st.lists(st.text(min_size=1, max_size=5), min_size=1, max_size=8, unique=True))
def test_received_touches_only_listed_keys(keys: list[str]) -> None:
    bystander = ResourceEntry(loading=True, outdated=False, data="keep")
    state = {"Task": {"\x00bystander": bystander}}

    state = resources_reducer(state, _received(*[(TASK.ref(key), Completed(key)) for key in keys]))

    assert state["Task"]["\x00bystander"] is bystander
    for key in keys:
        assert get_resource_entry(state, TASK.ref(key)).data == key


def test_last_entry_in_one_action_wins() -> None:
    reference = TASK.ref("t1")

    state = resources_reducer(None, _received((reference, Completed(1)), (reference, Completed(2))))

    assert get_resource_entry(state, reference).data == 2
