"""
Checks of submitted form values against a field's current choices.

A submission that cannot be checked is rejected; a saved draft that cannot be
checked is left alone.
"""

from __future__ import annotations

import logging
from typing import List, Union

from .errors import ExternalChoicesError
from .models import SourceDescriptor, SubmissionResult
from .resolver import ChoiceResolver

logger = logging.getLogger(__name__)

Submitted = Union[str, List[str]]

UNVERIFIABLE_MESSAGE = "Unable to verify your selection. Please try again."
UNAVAILABLE_MESSAGE = "The selected option is no longer available. Please refresh and select again."


def _as_list(submitted: Submitted) -> List[str]:
    return list(submitted) if isinstance(submitted, list) else [submitted]


def _current_values(resolver: ChoiceResolver, descriptor: SourceDescriptor) -> List[str]:
    return [choice.value for choice in resolver.get_choices(descriptor)]


def validate_submission(
    resolver: ChoiceResolver,
    descriptor: SourceDescriptor,
    submitted: Submitted,
) -> SubmissionResult:
    if not submitted:
        return SubmissionResult(is_valid=True)

    try:
        valid_values = _current_values(resolver, descriptor)
    except ExternalChoicesError as exc:
        logger.warning("Rejecting submission, choices unavailable: %s", exc)
        return SubmissionResult(is_valid=False, message=UNVERIFIABLE_MESSAGE)

    if not valid_values:
        return SubmissionResult(is_valid=False, message=UNVERIFIABLE_MESSAGE)

    allowed = set(valid_values)
    stale = [value for value in _as_list(submitted) if value not in allowed]
    if stale:
        return SubmissionResult(is_valid=False, message=UNAVAILABLE_MESSAGE, invalid_values=stale)

    return SubmissionResult(is_valid=True)


def prune_submission(
    resolver: ChoiceResolver,
    descriptor: SourceDescriptor,
    submitted: Submitted,
) -> Submitted:
    """
    Drop values of a saved draft that are no longer offered.

    Single values are cleared to "" when stale; lists keep only current
    values. Drafts are returned untouched when the choices cannot be loaded.
    """
    if not submitted:
        return submitted

    try:
        valid_values = _current_values(resolver, descriptor)
    except ExternalChoicesError as exc:
        logger.info("Keeping draft values, choices unavailable: %s", exc)
        return submitted

    if not valid_values:
        return submitted

    allowed = set(valid_values)
    if isinstance(submitted, list):
        return [value for value in submitted if value in allowed]

    return submitted if submitted in allowed else ""
