"""
Verification gate: which extra inputs a stage change needs before it may commit.

Rules are a declarative table keyed by (category, from_status, to_status):

    needs_employee      New Mix / Mix More / Colour Code on
                          Waiting→Mixing, Mixing→Spraying,
                          Spraying→Re-Mixing, Re-Mixing→Spraying;
                        Mix More / Colour Code on Spraying→Ready;
                        every revert out of Ready (any category)
    needs_colour_code   New Mix on (Mixing|Spraying|Re-Mixing)→Ready
                        while the colour code is empty or "Pending"
    needs_reason        cancellations and reverts out of Ready

A missing colour code is always collected together with an employee code:
the formula is only accepted from a verified operator.
"""
from __future__ import annotations

from dataclasses import dataclass

from domain.constants import PENDING_COLOUR_CODE, TERMINAL_STATUSES
from domain.enums import Category, InputKind, OrderStatus

C = Category
S = OrderStatus

_VERIFIED_CATEGORIES = (C.NEW_MIX, C.MIX_MORE, C.COLOUR_CODE)

_PRODUCTION_EDGES = (
    (S.WAITING, S.MIXING),
    (S.MIXING, S.SPRAYING),
    (S.SPRAYING, S.RE_MIXING),
    (S.RE_MIXING, S.SPRAYING),
)

_REVERT_EDGES = (
    (S.READY, S.SPRAYING),
    (S.READY, S.RE_MIXING),
)

_COLOUR_CHECK_SOURCES = (S.MIXING, S.SPRAYING, S.RE_MIXING)


@dataclass(frozen=True)
class Rule:
    employee: bool = False
    colour_code: bool = False  # only when the order's colour code is still missing
    reason: bool = False


def _build_rules() -> dict[tuple[Category, OrderStatus, OrderStatus], Rule]:
    rules: dict[tuple[Category, OrderStatus, OrderStatus], Rule] = {}

    for category in _VERIFIED_CATEGORIES:
        for frm, to in _PRODUCTION_EDGES:
            rules[(category, frm, to)] = Rule(employee=True)

    for category in (C.MIX_MORE, C.COLOUR_CODE):
        rules[(category, S.SPRAYING, S.READY)] = Rule(employee=True)

    for frm in _COLOUR_CHECK_SOURCES:
        rules[(C.NEW_MIX, frm, S.READY)] = Rule(colour_code=True)

    for category in Category:
        for frm, to in _REVERT_EDGES:
            rules[(category, frm, to)] = Rule(employee=True, reason=True)
        for frm in OrderStatus:
            if frm not in TERMINAL_STATUSES:
                rules[(category, frm, S.CANCELLED)] = Rule(reason=True)

    return rules


RULES = _build_rules()

_NO_RULE = Rule()


@dataclass(frozen=True)
class Requirements:
    needs_employee: bool = False
    needs_colour_code: bool = False
    needs_reason: bool = False

    def missing(
        self,
        *,
        colour_code: str | None = None,
        employee_code: str | None = None,
        reason: str | None = None,
    ) -> list[InputKind]:
        """Required inputs the caller has not supplied, in prompt order."""
        missing = []
        if self.needs_colour_code and not has_colour_code(colour_code):
            missing.append(InputKind.COLOUR_CODE)
        if self.needs_employee and not _filled(employee_code):
            missing.append(InputKind.EMPLOYEE_CODE)
        if self.needs_reason and not _filled(reason):
            missing.append(InputKind.REASON)
        # colour code and employee code are prompted for together
        if InputKind.COLOUR_CODE in missing and InputKind.EMPLOYEE_CODE not in missing:
            missing.insert(1, InputKind.EMPLOYEE_CODE)
        return missing


def _filled(value: str | None) -> bool:
    return bool(value and value.strip())


def has_colour_code(value: str | None) -> bool:
    """True for a concrete colour code (not empty, not the Pending sentinel)."""
    return _filled(value) and value.strip() != PENDING_COLOUR_CODE


def rule_for(category, from_status, to_status) -> Rule:
    try:
        key = (Category(category), OrderStatus(from_status), OrderStatus(to_status))
    except ValueError:
        return _NO_RULE
    return RULES.get(key, _NO_RULE)


def evaluate(category, from_status, to_status, current_colour_code: str | None = None) -> Requirements:
    """Requirements for moving an order of `category` from one status to another."""
    rule = rule_for(category, from_status, to_status)
    needs_colour = rule.colour_code and not has_colour_code(current_colour_code)
    return Requirements(
        needs_employee=rule.employee or needs_colour,
        needs_colour_code=needs_colour,
        needs_reason=rule.reason,
    )
