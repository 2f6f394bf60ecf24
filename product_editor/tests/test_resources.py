import pytest

from product_editor.catalog import CatalogApi
from product_editor.resources import (
    FEATURE_TYPES,
    LABELS,
    LOADING,
    NOT_REQUESTED,
    STANDARDS,
    SUBCATEGORY_RESOURCES,
    USE_CASES,
    Errored,
    Loaded,
    SectionStatus,
    SubcategoryResources,
    section_status,
)
from product_editor.state import StateStore
from test_support import FakeClient, require, subcategory_responses


def _resources(client, runner):
    return SubcategoryResources(CatalogApi(client), runner, StateStore())


def test_initial_state_is_not_requested(fake_client, manual_runner):
    resources = _resources(fake_client, manual_runner)

    for name in SUBCATEGORY_RESOURCES:
        require(resources.state(name) == NOT_REQUESTED, f"Expected {name} not requested")
    require(manual_runner.tasks == [], "Nothing may be fetched before a subcategory is chosen")


@pytest.mark.parametrize("subcategory_id", [7, 8])
def test_select_resets_and_requests_all_four(fake_client, manual_runner, subcategory_id):
    resources = _resources(fake_client, manual_runner)

    resources.select(subcategory_id)

    for name in SUBCATEGORY_RESOURCES:
        require(resources.state(name) == LOADING, f"Expected {name} loading")
    require(len(manual_runner.tasks) == 4, "Expected four fetches")
    manual_runner.run_all()
    require(all(f"/{subcategory_id}/" in path for path in fake_client.paths("GET")),
            "Expected fetches scoped to the selected subcategory")
    for name in SUBCATEGORY_RESOURCES:
        require(isinstance(resources.state(name), Loaded), f"Expected {name} loaded")


def test_reselecting_same_subcategory_requests_again(fake_client, immediate_runner):
    resources = _resources(fake_client, immediate_runner)

    resources.select(7)
    resources.select(7)

    require(immediate_runner.submitted == 8, "Expected every selection to re-request")


def test_stale_responses_are_discarded(manual_runner):
    responses = subcategory_responses(7)
    responses.update(subcategory_responses(8, features=[{"id": 80, "title": "Sole", "variant": "null"}]))
    resources = _resources(FakeClient(responses), manual_runner)

    resources.select(7)
    resources.select(8)
    # Newer generation resolves first, older responses arrive afterwards.
    for index in range(4, 8):
        manual_runner.run(index)
    for index in range(4):
        manual_runner.run(index)

    labels = resources.state(LABELS)
    require(isinstance(labels, Loaded), "Expected labels loaded")
    require(resources.subcategory_id == 8, "Expected latest subcategory to win")
    require(resources.generation == 2, "Expected two generations")
    require(resources.state(FEATURE_TYPES).data[0].id == 80, "Expected features from subcategory 8")


def test_stale_response_does_not_replace_loading_state(fake_client, manual_runner):
    resources = _resources(fake_client, manual_runner)

    resources.select(7)
    resources.select(8)
    manual_runner.run(0)

    require(resources.state(FEATURE_TYPES) == LOADING, "Stale response must not be applied")


def test_failure_is_isolated_per_resource(manual_runner):
    responses = subcategory_responses(7, labels=RuntimeError("boom"))
    resources = _resources(FakeClient(responses), manual_runner)

    resources.select(7)
    manual_runner.run_all()

    require(isinstance(resources.state(LABELS), Errored), "Expected labels errored")
    require(isinstance(resources.state(USE_CASES), Loaded), "Other resources must still load")
    require(isinstance(resources.state(STANDARDS), Loaded), "Other resources must still load")


def test_store_notifies_subscribers(fake_client, immediate_runner):
    store = StateStore()
    seen = []
    store.subscribe(FEATURE_TYPES, seen.append)
    resources = SubcategoryResources(CatalogApi(fake_client), immediate_runner, store)

    resources.select(7)

    require(seen[0] == NOT_REQUESTED, "Expected initial state notification")
    require(seen[1] == LOADING, "Expected loading notification")
    require(isinstance(seen[2], Loaded), "Expected loaded notification")


@pytest.mark.parametrize("state,expected", [
    (NOT_REQUESTED, SectionStatus.IDLE),
    (LOADING, SectionStatus.LOADING),
    (Loaded([1]), SectionStatus.READY),
    (Loaded([]), SectionStatus.UNAVAILABLE),
    (Loaded(None), SectionStatus.UNAVAILABLE),
    (Errored(RuntimeError("x")), SectionStatus.UNAVAILABLE),
])
def test_section_status(state, expected):
    require(section_status(state) is expected, f"Expected {expected} for {state}")
