"""Semver range expressions.

A range is a disjunction of conjunctions of comparators:

    ">=1.0.0 <2.0.0"          1.0.0 <= v < 2.0.0
    ">=1.0.0 && !=1.2.0"      "&&" is an explicit AND
    ">=1.0.0 !1.2.0"          "!" is short for "!="
    "<1.0.0 || >=2.0.0"       either side may match

Partial versions inside a term are padded ("<2" means "<2.0.0").
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable

import semver

from .errors import InvalidRangeExpression
from .models import VersionedFile
from .versions import parse_version, sanitize_version

OPERATORS: dict[str, Callable[[semver.Version, semver.Version], bool]] = {
    "": operator.eq,
    "=": operator.eq,
    "==": operator.eq,
    "!=": operator.ne,
    "!": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

_OPS_LONGEST_FIRST = sorted((op for op in OPERATORS if op), key=len, reverse=True)
# "> 1.0.0" is one term, not an operator followed by a bare version.
_OP_SPACE_RE = re.compile(r"(>=|<=|!=|==|=|>|<|!)\s+")


class Comparator:
    """A single ``<op><version>`` term."""

    __slots__ = ("op", "version")

    def __init__(self, op: str, version: semver.Version) -> None:
        self.op = op
        self.version = version

    def __call__(self, version: semver.Version) -> bool:
        return OPERATORS[self.op](version, self.version)

    def __str__(self) -> str:
        return f"{self.op}{self.version}"

    def __repr__(self) -> str:
        return f"Comparator({str(self)!r})"


class VersionRange:
    """Callable predicate over ``semver.Version``.

    ``alternatives`` holds the OR-ed items, each a list of AND-ed
    comparators. An empty list of alternatives accepts every version.
    """

    def __init__(
        self,
        alternatives: list[list[Comparator]] | None = None,
        description: str | None = None,
    ) -> None:
        self.alternatives = alternatives or []
        self.description = description if description is not None else str(self)

    def __call__(self, version: semver.Version) -> bool:
        if not self.alternatives:
            return True
        return any(all(c(version) for c in item) for item in self.alternatives)

    def __and__(self, other: VersionRange) -> VersionRange:
        if not self.alternatives:
            return VersionRange(other.alternatives, description=other.description)
        if not other.alternatives:
            return VersionRange(self.alternatives, description=self.description)
        combined = [a + b for a in self.alternatives for b in other.alternatives]
        return VersionRange(
            combined, description=f"{self.description} && {other.description}"
        )

    def __str__(self) -> str:
        if not self.alternatives:
            return "*"
        return " || ".join(
            " ".join(str(c) for c in item) for item in self.alternatives
        )

    def __repr__(self) -> str:
        return f"VersionRange({str(self)!r})"


def _parse_term(term: str, expression: str) -> Comparator:
    op, raw = "", term
    for candidate in _OPS_LONGEST_FIRST:
        if term.startswith(candidate):
            op, raw = candidate, term[len(candidate) :]
            break
    if not raw:
        raise InvalidRangeExpression(expression, f"missing version after '{op}'")
    try:
        return Comparator(op, parse_version(raw))
    except ValueError as exc:
        raise InvalidRangeExpression(expression, str(exc)) from exc


def parse_range(expression: str) -> VersionRange:
    """Parse a range expression into a ``VersionRange``.

    The whole expression is sanitized first so that a bare partial version
    such as "2" or "2.1" is accepted.

    Raises:
        InvalidRangeExpression: On an empty expression, an empty ``||``
            alternative, a dangling operator or an invalid version.
    """
    if not expression.strip():
        raise InvalidRangeExpression(expression, "empty range")
    sanitized = sanitize_version(expression.strip())

    normalized = _OP_SPACE_RE.sub(r"\1", sanitized.replace("&&", " "))
    alternatives: list[list[Comparator]] = []
    for item in normalized.split("||"):
        terms = item.split()
        if not terms:
            raise InvalidRangeExpression(expression, "empty alternative")
        alternatives.append([_parse_term(t, expression) for t in terms])

    return VersionRange(alternatives, description=expression.strip())


def build_range(configured: str, previous: VersionedFile | None) -> VersionRange:
    """Combine the configured constraint with the previously emitted version.

    When a previous version exists, only strictly greater versions are
    accepted in addition to the configured constraint, and the range
    description reads "<configured> && ><previous>".

    Must not be called in unversioned mode (empty ``configured``).

    Raises:
        InvalidRangeExpression: If ``configured`` does not parse.
    """
    version_range = parse_range(configured)
    if previous is not None and previous.path:
        previous_range = VersionRange(
            [[Comparator(">", previous.version)]],
            description=f">{previous.version}",
        )
        version_range = version_range & previous_range
    return version_range
