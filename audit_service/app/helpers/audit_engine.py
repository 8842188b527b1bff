"""Audit classification and the entry status state machine.

Everything here is pure: no database access and no I/O, so the same inputs
always give the same classification and transitions.
"""
from dataclasses import dataclass
from typing import Mapping, Optional

from ..enum.audit_enum import AuditResult, ClientAction, EntryStatus

COUNT_FIELDS = ("picking", "bulk", "near_expiry", "jit", "damaged")


class InvalidTransitionError(Exception):
    """Raised when a response is applied to an entry that is not pending."""

    def __init__(self, current: EntryStatus):
        self.current = current
        super().__init__(
            f"Entry is '{current.value}', only '{EntryStatus.PENDING_CLIENT.value}' entries can be answered")


class InvalidActionError(ValueError):
    pass


@dataclass(frozen=True)
class Classification:
    total_identified: float
    min_quantity: float
    blocked_quantity: float
    max_quantity: float
    audit_result: AuditResult
    discrepancy: float

    @property
    def initial_status(self) -> EntryStatus:
        return initial_status(self.audit_result)

    @property
    def requires_approver(self) -> bool:
        return self.initial_status == EntryStatus.PENDING_CLIENT


def _quantity(value) -> float:
    if value is None or value == "":
        return 0.0
    number = float(value)
    if number < 0:
        raise ValueError(f"Quantities must be non-negative, got {value}")
    return number


def classify_range(total_identified, min_quantity=0, blocked_quantity=0) -> Classification:
    """Classify a counted total against the inclusive [min, min + blocked] range."""
    total = _quantity(total_identified)
    minimum = _quantity(min_quantity)
    blocked = _quantity(blocked_quantity)
    maximum = minimum + blocked

    if total < minimum:
        result, magnitude = AuditResult.SHORTFALL, minimum - total
    elif total > maximum:
        result, magnitude = AuditResult.EXCESS, total - maximum
    else:
        result, magnitude = AuditResult.MATCH, 0.0

    return Classification(
        total_identified=total,
        min_quantity=minimum,
        blocked_quantity=blocked,
        max_quantity=maximum,
        audit_result=result,
        discrepancy=magnitude,
    )


def classify(counts: Optional[Mapping], odin: Optional[Mapping]) -> Classification:
    """Classify a SKU count breakdown against its ODIN thresholds.

    Missing count fields and thresholds default to 0. The total is the exact
    sum of the breakdown; nothing is rounded before comparing.
    """
    counts = counts or {}
    odin = odin or {}
    total = sum(_quantity(counts.get(field)) for field in COUNT_FIELDS)
    return classify_range(
        total,
        odin.get("min_quantity"),
        odin.get("blocked_quantity"),
    )


def classify_bin(book_quantity, actual_quantity) -> Classification:
    """Bin audits declare a single book quantity: the range collapses to one point."""
    return classify_range(actual_quantity, book_quantity, 0)


def initial_status(audit_result: AuditResult) -> EntryStatus:
    if audit_result == AuditResult.MATCH:
        return EntryStatus.AUTO_APPROVED
    return EntryStatus.PENDING_CLIENT


def parse_action(action) -> ClientAction:
    try:
        return ClientAction(str(action).strip().lower())
    except ValueError:
        raise InvalidActionError(
            f"Invalid action '{action}', expected one of: "
            f"{', '.join(a.value for a in ClientAction)}")


def respond_transition(current: EntryStatus, action) -> EntryStatus:
    """Next status for a client response; only pending entries can move."""
    client_action = action if isinstance(action, ClientAction) else parse_action(action)
    if current != EntryStatus.PENDING_CLIENT:
        raise InvalidTransitionError(current)
    if client_action == ClientAction.APPROVED:
        return EntryStatus.CLIENT_APPROVED
    return EntryStatus.CLIENT_REJECTED


def display_quantity(value) -> Optional[float]:
    """Two-decimal value for reports and exports."""
    if value is None:
        return None
    return round(float(value), 2)
