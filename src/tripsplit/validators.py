"""Validators for user input."""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .exceptions import ValidationError
from .models import CENT, MAX_STORED_INTEGER, to_cents


def parse_amount(value: Decimal | int | float | str, field: str = "Amount") -> Decimal:
    """
    Validate and parse a money amount.

    Strings may use a comma as the decimal separator. The result is rounded
    half-up to two decimal places and must be positive.

    Args:
        value: User input
        field: Field name used in error messages

    Returns:
        Positive amount as Decimal

    Raises:
        ValidationError: If the value is not a finite positive number
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number, got {value!r}")

    try:
        if isinstance(value, str):
            amount = Decimal(value.strip().replace(" ", "").replace(",", "."))
        elif isinstance(value, float):
            # Go through str so 0.1 stays 0.1
            amount = Decimal(str(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} is not a valid number: {value!r}") from None

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number, got {value!r}")

    try:
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field} is out of range: {value!r}") from None
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero, got {value!r}")
    if to_cents(amount) > MAX_STORED_INTEGER:
        raise ValidationError(f"{field} is too large: {value!r}")

    return amount


def parse_id(value: int | str, field: str = "ID") -> int:
    """
    Validate and parse a single identifier.

    Raises:
        ValidationError: If the value is not a positive integer
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer, got {value!r}")
    if isinstance(value, int):
        user_id = value
    else:
        try:
            user_id = int(str(value).strip())
        except ValueError:
            raise ValidationError(f"{field} is not a valid identifier: {value!r}") from None

    if user_id <= 0:
        raise ValidationError(f"{field} must be positive, got {user_id}")
    if user_id > MAX_STORED_INTEGER:
        raise ValidationError(f"{field} is too large: {user_id}")
    return user_id


def parse_participant_ids(value: str | Iterable[int | str]) -> list[int]:
    """
    Parse participant identifiers.

    Accepts either a comma-separated string ("1, 2, 3") or an iterable of
    identifiers. Duplicates are dropped, keeping first-seen order.

    Returns:
        Non-empty list of unique identifiers

    Raises:
        ValidationError: If any entry is not an identifier or none are given
    """
    if isinstance(value, str):
        items: list[int | str] = [part for part in value.split(",") if part.strip()]
    else:
        items = list(value)

    ids: list[int] = []
    for item in items:
        user_id = parse_id(item, field="Participant ID")
        if user_id not in ids:
            ids.append(user_id)

    if not ids:
        raise ValidationError("At least one participant is required")
    return ids


def validate_name(name: str, field: str = "Name") -> str:
    """
    Validate a display name.

    Returns:
        The name with surrounding whitespace removed

    Raises:
        ValidationError: If the name is empty
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} cannot be empty")
    return cleaned
