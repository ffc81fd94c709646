"""Derives a raw status signal from a GitHub issue.

Precedence is expressed as an ordered tuple of small strategy functions.
Each strategy either returns a signal or None, and the first signal wins:

1. the project status field (GitHub Projects),
2. the first ``status: <value>`` label,
3. the closed issue state.

When no strategy yields a signal the result has no raw value and a source
of ``none``.
"""

from typing import Callable, Iterable, Sequence

from issue_mirror.status.models import NO_SIGNAL, StatusSignal, StatusSource
from issue_mirror.utils.constants import STATUS_LABEL_PATTERN
from issue_mirror.utils.labels import LabelType, label_names

StatusStrategy = Callable[[str | None, Sequence[str], str | None], StatusSignal | None]


def project_status_strategy(project_status: str | None, labels: Sequence[str], issue_state: str | None) -> StatusSignal | None:
    """Use the project status field when it holds a non-empty value."""
    if project_status is None:
        return None
    value = project_status.strip()
    if not value:
        return None
    return StatusSignal(raw=value, source=StatusSource.EXTERNAL_PROJECT, evidence=value)


def status_label_strategy(project_status: str | None, labels: Sequence[str], issue_state: str | None) -> StatusSignal | None:
    """Use the first label following the ``status: <value>`` convention."""
    for label in labels:
        match = STATUS_LABEL_PATTERN.match(label)
        if match is None or not match.group("value"):
            continue
        return StatusSignal(raw=match.group("value"), source=StatusSource.EXTERNAL_LABEL, evidence=label)
    return None


def issue_state_strategy(project_status: str | None, labels: Sequence[str], issue_state: str | None) -> StatusSignal | None:
    """Fall back to the issue state, which only carries a signal once closed."""
    if issue_state is not None and issue_state.strip().lower() == "closed":
        return StatusSignal(raw="closed", source=StatusSource.EXTERNAL_STATE, evidence="closed")
    return None


STATUS_STRATEGIES: tuple[StatusStrategy, ...] = (
    project_status_strategy,
    status_label_strategy,
    issue_state_strategy,
)


def extract_status(
    project_status: str | None,
    labels: Iterable[LabelType] | None,
    issue_state: str | None,
    strategies: Sequence[StatusStrategy] = STATUS_STRATEGIES,
) -> StatusSignal:
    """Return the first signal produced by the strategies, in order.

    Args:
        project_status: Value of the project status field, if any.
        labels: Issue labels as strings, dicts, or objects with a name.
        issue_state: Issue state, ``open`` or ``closed``.
        strategies: Strategy functions to evaluate, in precedence order.

    Returns:
        The winning StatusSignal, or a signal with source ``none``.
    """
    names = label_names(labels)
    for strategy in strategies:
        signal = strategy(project_status, names, issue_state)
        if signal is not None:
            return signal
    return NO_SIGNAL
