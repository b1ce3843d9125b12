"""
Answer validation and aggregation for form responses.

validate_answers() checks a submission against the form's field definitions
and returns the cleaned answers; summarize_answers() folds every stored
submission into per-field statistics.
"""

import math
from datetime import date
from typing import Any, Dict, Iterable, List

from pydantic import EmailStr, TypeAdapter, ValidationError

from triddle.core.errors import AnswerValidationError
from triddle.schemas.schemas import CHOICE_FIELD_TYPES, FieldType, FormField

DEFAULT_RATING_MAX = 5
UPLOAD_URL_PREFIX = "/uploads/"

_email_adapter = TypeAdapter(EmailStr)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _check_number(form_field: FormField, value: Any) -> float:
    if not _is_finite_number(value):
        raise ValueError("must be a number")
    if form_field.min_value is not None and value < form_field.min_value:
        raise ValueError(f"must be at least {form_field.min_value:g}")
    if form_field.max_value is not None and value > form_field.max_value:
        raise ValueError(f"must be at most {form_field.max_value:g}")
    return value


def _check_value(form_field: FormField, value: Any) -> Any:
    """Return the cleaned value or raise ValueError with a short reason."""
    kind = form_field.type

    if kind in (FieldType.text, FieldType.textarea):
        if not isinstance(value, str):
            raise ValueError("must be text")
        if form_field.max_length is not None and len(value) > form_field.max_length:
            raise ValueError(f"must be at most {form_field.max_length} characters")
        return value

    if kind == FieldType.email:
        try:
            return str(_email_adapter.validate_python(value))
        except ValidationError:
            raise ValueError("must be a valid email address") from None

    if kind == FieldType.number:
        return _check_number(form_field, value)

    if kind in (FieldType.select, FieldType.radio):
        if value not in form_field.options:
            raise ValueError("must be one of the listed options")
        return value

    if kind == FieldType.checkbox:
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ValueError("must be a list of options")
        unknown = [item for item in value if item not in form_field.options]
        if unknown:
            raise ValueError(f"has unknown options: {', '.join(unknown)}")
        # de-duplicate, keep submission order
        return list(dict.fromkeys(value))

    if kind == FieldType.date:
        if not isinstance(value, str):
            raise ValueError("must be a date (YYYY-MM-DD)")
        try:
            return date.fromisoformat(value).isoformat()
        except ValueError:
            raise ValueError("must be a date (YYYY-MM-DD)") from None

    if kind == FieldType.rating:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("must be a whole number")
        low = math.ceil(form_field.min_value) if form_field.min_value is not None else 1
        high = math.floor(form_field.max_value) if form_field.max_value is not None else DEFAULT_RATING_MAX
        if not low <= value <= high:
            raise ValueError(f"must be between {low} and {high}")
        return value

    if kind == FieldType.file:
        if not isinstance(value, str) or not value.startswith(UPLOAD_URL_PREFIX):
            raise ValueError("must be an uploaded file URL")
        return value

    raise ValueError("has an unsupported type")


def validate_answers(fields: Iterable[FormField], answers: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a submission against the form's fields.

    Returns:
        Cleaned answers, keyed by field id; empty optional answers are dropped.

    Raises:
        AnswerValidationError: with one message per offending field in ``details``
    """
    fields = list(fields)
    known = {form_field.id for form_field in fields}
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Any] = {}

    for field_id in answers:
        if field_id not in known:
            errors[field_id] = "is not a field of this form"

    for form_field in fields:
        value = answers.get(form_field.id)
        if _is_empty(value):
            if form_field.required:
                errors[form_field.id] = f"'{form_field.label}' is required"
            continue
        try:
            cleaned[form_field.id] = _check_value(form_field, value)
        except ValueError as e:
            errors[form_field.id] = f"'{form_field.label}' {e}"

    if errors:
        raise AnswerValidationError("Invalid response", details=errors)
    return cleaned


def summarize_answers(fields: Iterable[FormField], submissions: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Aggregate stored answers per field.

    Choice fields get counts per option, numeric fields get min/max/average,
    every field gets the number of submissions that answered it.
    """
    fields = list(fields)
    answered = {form_field.id: 0 for form_field in fields}
    option_counts = {
        form_field.id: {option: 0 for option in form_field.options}
        for form_field in fields if form_field.type in CHOICE_FIELD_TYPES
    }
    numbers: Dict[str, List[float]] = {
        form_field.id: [] for form_field in fields
        if form_field.type in (FieldType.number, FieldType.rating)
    }
    total = 0

    for answers in submissions:
        total += 1
        for field_id, value in answers.items():
            if field_id not in answered or _is_empty(value):
                continue
            answered[field_id] += 1
            if field_id in option_counts:
                counts = option_counts[field_id]
                for choice in (value if isinstance(value, list) else [value]):
                    if choice in counts:
                        counts[choice] += 1
            elif field_id in numbers and _is_finite_number(value):
                numbers[field_id].append(value)

    summaries = []
    for form_field in fields:
        summary = {
            "field_id": form_field.id,
            "label": form_field.label,
            "type": form_field.type,
            "answered": answered[form_field.id],
        }
        if form_field.id in option_counts:
            summary["option_counts"] = option_counts[form_field.id]
        values = numbers.get(form_field.id)
        if values:
            summary["average"] = round(sum(values) / len(values), 2)
            summary["minimum"] = min(values)
            summary["maximum"] = max(values)
        summaries.append(summary)

    return {"total_responses": total, "fields": summaries}
