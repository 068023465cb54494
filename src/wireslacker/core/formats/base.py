"""Rule table shared by the document parsers."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PatternRule(Generic[T]):
    """A pattern plus the handler applied to ``target`` when it matches."""

    name: str
    pattern: re.Pattern[str]
    handle: Callable[[re.Match[str], T], None]


@dataclass(frozen=True, slots=True)
class FirstMatch(Generic[T]):
    """Try rules in order; the first match handles the line."""

    rules: Sequence[PatternRule[T]]

    def apply(self, line: str, target: T) -> str | None:
        """Return the name of the rule that handled ``line``, if any."""
        for rule in self.rules:
            m = rule.pattern.search(line)
            if m:
                rule.handle(m, target)
                return rule.name
        return None
