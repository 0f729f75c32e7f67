"""
Filter predicate builder.

Turns a FilterRequest into a list of predicates, each of which knows its
SQL clause (with bound parameters) and how to test a record in Python.
Column names only ever come from the fixed tables below.

The two EtherCAT axis counts form one reassignable budget: axes from the
real-or-virtual pool can serve as virtual axes. A request for EtherCAT
axes is therefore checked as a single combined sum, never per field.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from ctrlsel.models.records import FLAG_FIELDS, MAX_COUNT, FilterRequest, ProductRecord


# Numeric minimums compared per column
MINIMUM_COLUMNS = (
    "dio",
    "aio",
    "serial_ports",
    "pulse_axes",
    "e_cam_axes",
)

# Columns that together make up the combinable EtherCAT axis budget
ETHERCAT_BUDGET_COLUMNS = (
    "ethercat_real_or_virtual_axes",
    "ethercat_virtual_axes",
)

REQUIRED_FLAG_COLUMNS = FLAG_FIELDS


@dataclass(frozen=True)
class Predicate:
    """One conjunct of a filter query."""
    name: str
    clause: str
    params: tuple = ()
    check: Callable[[ProductRecord], bool] = field(default=lambda record: True, compare=False)

    def matches(self, record: ProductRecord) -> bool:
        return self.check(record)


def minimum(column: str, value: int) -> Predicate:
    """Record's column must be at least value."""
    if column not in MINIMUM_COLUMNS:
        raise ValueError(f"Not a minimum column: {column}")
    return Predicate(
        name=column,
        clause=f"{column} >= ?",
        params=(value,),
        check=lambda record: getattr(record, column) >= value,
    )


def required_flag(column: str) -> Predicate:
    """Record must support the capability."""
    if column not in REQUIRED_FLAG_COLUMNS:
        raise ValueError(f"Not a flag column: {column}")
    return Predicate(
        name=column,
        clause=f"{column} = 1",
        check=lambda record: bool(getattr(record, column)),
    )


def ethercat_budget(real_or_virtual_floor: Optional[int], virtual_floor: Optional[int]) -> Predicate:
    """Combined EtherCAT capacity must cover both requested floors."""
    required = (real_or_virtual_floor or 0) + (virtual_floor or 0)
    real_or_virtual, virtual = ETHERCAT_BUDGET_COLUMNS
    return Predicate(
        name="ethercat_axis_budget",
        clause=f"({real_or_virtual} + {virtual}) >= ?",
        # Two maximal floors exceed SQLite INTEGER; bind those as REAL
        params=(required if required <= MAX_COUNT else float(required),),
        check=lambda record: record.ethercat_axis_budget >= required,
    )


def build_predicates(request: FilterRequest) -> list[Predicate]:
    """
    Build the conjunction implied by a filter request.

    Args:
        request: Filter request; unset fields add no predicate.

    Returns:
        List of predicates, empty for an unconstrained request.
    """
    predicates = []

    minimums = request.active_minimums()

    for column in MINIMUM_COLUMNS:
        if column in minimums:
            predicates.append(minimum(column, minimums[column]))

    if any(column in minimums for column in ETHERCAT_BUDGET_COLUMNS):
        floors = [minimums.get(column) for column in ETHERCAT_BUDGET_COLUMNS]
        predicates.append(ethercat_budget(*floors))

    for column in request.required_flags():
        predicates.append(required_flag(column))

    return predicates


def where_clause(predicates: list[Predicate]) -> tuple[str, tuple]:
    """Join predicates into a WHERE clause and its parameters."""
    if not predicates:
        return "", ()
    sql = " WHERE " + " AND ".join(p.clause for p in predicates)
    params = tuple(param for p in predicates for param in p.params)
    return sql, params


def matches(record: ProductRecord, request: FilterRequest) -> bool:
    """Evaluate a request against one record without the database."""
    return all(p.matches(record) for p in build_predicates(request))


def filter_records(records: list[ProductRecord], request: FilterRequest) -> list[ProductRecord]:
    """In-memory equivalent of a store query."""
    predicates = build_predicates(request)
    return [r for r in records if all(p.matches(r) for p in predicates)]
