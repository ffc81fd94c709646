"""Unit tests for the status signal extractor."""

from types import SimpleNamespace

import pytest

from issue_mirror.status.extractor import (
    STATUS_STRATEGIES,
    extract_status,
    issue_state_strategy,
    project_status_strategy,
    status_label_strategy,
)
from issue_mirror.status.models import NO_SIGNAL, StatusSignal, StatusSource


def test_project_status_wins_over_labels_and_state() -> None:
    signal = extract_status("  In Progress ", ["status: done"], "closed")
    assert signal == StatusSignal(raw="In Progress", source=StatusSource.EXTERNAL_PROJECT, evidence="In Progress")


def test_blank_project_status_falls_through_to_labels() -> None:
    signal = extract_status("   ", [{"name": "status: blocked"}], "open")
    assert signal.source == StatusSource.EXTERNAL_LABEL
    assert signal.raw == "blocked"


def test_first_status_label_wins() -> None:
    labels = [SimpleNamespace(name="bug"), SimpleNamespace(name="status: review"), SimpleNamespace(name="status: done")]
    signal = extract_status(None, labels, "open")
    assert signal == StatusSignal(raw="review", source=StatusSource.EXTERNAL_LABEL, evidence="status: review")


@pytest.mark.parametrize(
    "label,expected_raw",
    [
        pytest.param("status: in progress", "in progress", id="canonical"),
        pytest.param("Status:Done", "Done", id="case-insensitive-no-space"),
        pytest.param("  STATUS :  waiting  ", "waiting", id="whitespace-tolerant"),
    ],
)
def test_status_label_convention(label: str, expected_raw: str) -> None:
    signal = extract_status(None, [label], "open")
    assert signal.raw == expected_raw
    assert signal.evidence == label


def test_status_label_with_empty_value_is_ignored() -> None:
    signal = extract_status(None, ["status:", "status:   "], "open")
    assert signal == NO_SIGNAL


def test_closed_state_is_last_resort() -> None:
    signal = extract_status(None, ["bug"], "closed")
    assert signal == StatusSignal(raw="closed", source=StatusSource.EXTERNAL_STATE, evidence="closed")


def test_open_issue_without_signals() -> None:
    assert extract_status(None, [], "open") == NO_SIGNAL
    assert extract_status(None, None, None) == NO_SIGNAL


def test_strategies_are_evaluated_in_precedence_order() -> None:
    assert STATUS_STRATEGIES == (project_status_strategy, status_label_strategy, issue_state_strategy)


def test_custom_strategies_can_be_supplied() -> None:
    signal = extract_status("Done", ["status: review"], "open", strategies=(status_label_strategy,))
    assert signal.source == StatusSource.EXTERNAL_LABEL


def test_extraction_is_deterministic() -> None:
    labels = ["status: implementing", "team: core"]
    assert extract_status(None, labels, "open") == extract_status(None, list(labels), "open")
