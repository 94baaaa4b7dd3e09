import math
from typing import Any, List, Mapping, Optional, Sequence


def _to_text(value: Any) -> str:
    # spreadsheet readers turn integer columns with blanks into floats
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", ""))
        except ValueError:
            return None
    if math.isnan(number):
        return None
    return number


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def filter_matches(row: Mapping[str, Any], exclusion) -> bool:
    """Check whether a single exclusion rule matches a row.

    String operators compare case-sensitively. Numeric operators apply only
    when both the cell and the rule value parse as numbers. A rule value of
    None tests for blanks: ``equals`` matches missing cells and
    ``not_equals`` matches filled ones. Otherwise a missing cell only
    matches ``not_equals``.

    Args:
        row: Population row
        exclusion: Object with column, operator and value attributes

    Returns:
        True if the row should be excluded by this rule
    """
    cell = row.get(exclusion.column)
    operator = exclusion.operator

    if _is_missing(exclusion.value):
        if operator == "equals":
            return _is_missing(cell)
        if operator == "not_equals":
            return not _is_missing(cell)
        return False

    if _is_missing(cell):
        return operator == "not_equals"

    if operator == "equals":
        return _to_text(cell) == _to_text(exclusion.value)
    if operator == "not_equals":
        return _to_text(cell) != _to_text(exclusion.value)
    if operator == "contains":
        return _to_text(exclusion.value) in _to_text(cell)

    left = _to_number(cell)
    right = _to_number(exclusion.value)
    if left is None or right is None:
        return False
    if operator == "greater_than":
        return left > right
    if operator == "less_than":
        return left < right

    raise ValueError(f"Unknown filter operator: {operator}")


def apply_exclusions(
    rows: Sequence[Mapping[str, Any]], exclusions: Sequence
) -> List[int]:
    """Return positions of rows that survive every exclusion rule.

    A row is excluded if any rule matches it. Positions keep population order.
    """
    if not exclusions:
        return list(range(len(rows)))

    return [
        index
        for index, row in enumerate(rows)
        if not any(filter_matches(row, exclusion) for exclusion in exclusions)
    ]
