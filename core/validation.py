"""
Field type checks and record schema validation
"""

import math
from typing import Any, Dict, List, Mapping, Optional, Union
from core.exceptions import RecordValidationError
from schemas.transform import FieldRule, FieldType, FilterOperator


def matches_type(value: Any, field_type: Union[FieldType, str]) -> bool:
    """Check a value against a field type name (bools are not numbers)"""
    field_type = FieldType(field_type)

    if field_type == FieldType.STRING:
        return isinstance(value, str)
    if field_type == FieldType.BOOLEAN:
        return isinstance(value, bool)
    if field_type == FieldType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if field_type == FieldType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if field_type == FieldType.OBJECT:
        return isinstance(value, Mapping)
    if field_type == FieldType.ARRAY:
        return isinstance(value, (list, tuple))
    return False


def type_name(value: Any) -> str:
    """Name a value's type in field-type vocabulary"""
    if value is None:
        return "null"
    for field_type in (
        FieldType.BOOLEAN,
        FieldType.INTEGER,
        FieldType.NUMBER,
        FieldType.STRING,
        FieldType.OBJECT,
        FieldType.ARRAY,
    ):
        if matches_type(value, field_type):
            return "number" if field_type == FieldType.INTEGER else field_type.value
    return type(value).__name__


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def validate_record(record: Mapping[str, Any], schema: Dict[str, Union[FieldRule, Dict[str, Any]]]) -> None:
    """
    Validate one record against a field schema.

    Optional fields that are empty skip every other check. Raises
    RecordValidationError listing every violated rule.
    """
    errors: List[str] = []

    for field, rule in schema.items():
        if not isinstance(rule, FieldRule):
            rule = FieldRule.model_validate(rule)
        value = record.get(field)

        if is_empty(value):
            if rule.required:
                errors.append(f"{field} is required")
            continue

        if rule.type and not matches_type(value, rule.type):
            errors.append(f"{field} must be of type {rule.type.value}")
            continue

        if isinstance(value, str):
            if rule.min_length is not None and len(value) < rule.min_length:
                errors.append(f"{field} must be at least {rule.min_length} characters")
            if rule.max_length is not None and len(value) > rule.max_length:
                errors.append(f"{field} must be no more than {rule.max_length} characters")
            if rule.pattern is not None and not rule.pattern.search(value):
                errors.append(f"{field} format is invalid")

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if rule.min is not None and value < rule.min:
                errors.append(f"{field} must be at least {rule.min:g}")
            if rule.max is not None and value > rule.max:
                errors.append(f"{field} must be no more than {rule.max:g}")

        if rule.predicate is not None and not rule.predicate(value):
            errors.append(f"{field} failed custom validation")

    if errors:
        raise RecordValidationError(
            f"Record failed validation: {'; '.join(errors)}",
            context={"errors": errors}
        )


def to_number(value: Any) -> Optional[float]:
    """Numeric reading of a value; None for missing, boolean or non-numeric"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def compare(value: Any, operator: Union[FilterOperator, str], expected: Any = None) -> bool:
    """
    Evaluate ``value <operator> expected``.

    Ordering operators read numeric text as numbers when both sides are
    numeric; otherwise incomparable types compare false rather than raising.
    ``contains`` is a substring test on the string form of ``value``.
    """
    operator = FilterOperator(operator)

    if operator == FilterOperator.EXISTS:
        return value is not None
    if operator == FilterOperator.EQUALS:
        return value == expected
    if operator == FilterOperator.NOT_EQUALS:
        return value != expected
    if operator == FilterOperator.CONTAINS:
        if value is None or expected is None:
            return False
        return str(expected) in str(value)

    if value is None or expected is None:
        return False

    # CSV values are text; order them numerically when both sides are numbers
    left, right = to_number(value), to_number(expected)
    if left is not None and right is not None:
        value, expected = left, right

    try:
        if operator == FilterOperator.GREATER_THAN:
            return bool(value > expected)
        return bool(value < expected)
    except TypeError:
        return False
