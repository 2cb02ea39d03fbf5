from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, List

from .errors import DuplicateValues, EmptyChoices, InvalidCharacters, InvalidType, TooManyChoices, format_value_list
from .rules import BLOCKED_VALUE_PATTERN, EMPTY_ROW_DISPLAY_LIMIT, MAX_CHOICES

logger = logging.getLogger(__name__)


def _field(choice: Any, name: str) -> str:
    if isinstance(choice, Mapping):
        value = choice.get(name, "")
    else:
        value = getattr(choice, name, "")
    return value if isinstance(value, str) else ""


class ChoiceValidator:
    """Gate between a parsed list and anything that renders or caches it."""

    max_choices = MAX_CHOICES

    def validate(self, choices: Any) -> None:
        """
        Raise if ``choices`` cannot be used as a field's options.

        Duplicates are reported before invalid characters. Empty labels or
        values are only logged: the parsers drop those rows already.
        """
        if not isinstance(choices, list):
            raise InvalidType()

        if not choices:
            raise EmptyChoices()

        if len(choices) > self.max_choices:
            raise TooManyChoices()

        seen: set[str] = set()
        duplicates: List[str] = []
        invalid: List[str] = []
        empty: List[str] = []

        for row, choice in enumerate(choices, start=1):
            label = _field(choice, "label")
            value = _field(choice, "value")

            if label.strip() == "" or value.strip() == "":
                empty.append(str(row))
                continue

            if not self.is_valid_value(value):
                invalid.append(value)

            if value in seen:
                duplicates.append(value)
            else:
                seen.add(value)

        if empty:
            logger.warning(
                "Empty labels or values found at rows: %s",
                format_value_list(empty, EMPTY_ROW_DISPLAY_LIMIT),
            )

        if duplicates:
            raise DuplicateValues(list(dict.fromkeys(duplicates)))

        if invalid:
            raise InvalidCharacters(list(dict.fromkeys(invalid)))

    def sanitize_value(self, value: str) -> str:
        return BLOCKED_VALUE_PATTERN.sub("", value).strip()

    def is_valid_value(self, value: str) -> bool:
        return BLOCKED_VALUE_PATTERN.search(value) is None
