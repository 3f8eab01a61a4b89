"""Classify free-form command input as an issue reference or a task."""

from dataclasses import dataclass
from typing import Union

from relay_cli.constants import ISSUE_IDENTIFIER_PATTERN


@dataclass(frozen=True)
class IssueReference:
    """An existing tracker issue, e.g. ``ENG-123`` (always uppercase)."""

    identifier: str


@dataclass(frozen=True)
class TaskDescription:
    """Free text describing work for which a new issue is drafted."""

    text: str


RoutedInput = Union[IssueReference, TaskDescription]


def classify_input(text: str) -> RoutedInput:
    """``eng-42`` -> IssueReference("ENG-42"); anything else is a task."""
    stripped = text.strip()
    if ISSUE_IDENTIFIER_PATTERN.match(stripped):
        return IssueReference(stripped.upper())
    return TaskDescription(stripped)
