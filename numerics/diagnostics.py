"""
Diagnostic helpers for case-request errors.

Lightweight on purpose (no color dependencies): a structured diagnostic with
suggestions/notes and a multi-line formatter, plus fuzzy matching used to
build "did you mean" hints for mistyped op names and operand types.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from typing import Iterable, List, Literal


Level = Literal["error", "warning", "info"]


@dataclass
class Diagnostic:
    level: Level
    message: str
    suggestions: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    def format(self) -> str:
        lines: List[str] = [f"{self.level.upper()}: {self.message}"]
        for n in self.notes:
            lines.append(f"Note: {n}")
        for s in self.suggestions:
            lines.append(f"Hint: {s}")
        return "\n".join(lines)


def closest_match(name: str, candidates: Iterable[str], *, n: int = 1) -> List[str]:
    return list(difflib.get_close_matches(str(name), list(candidates), n=n, cutoff=0.6))


def did_you_mean(name: str, candidates: Iterable[str]) -> List[str]:
    return [f"did you mean '{m}'?" for m in closest_match(name, candidates)]


__all__ = ["Diagnostic", "closest_match", "did_you_mean"]
