"""
Presentation helpers for currency, dates, phone numbers and addresses.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union
import re

Number = Union[int, float, Decimal]

US_STATES = {
    "Alabama": "AL", "Alaska": "AK", "Arizona": "AZ", "Arkansas": "AR",
    "California": "CA", "Colorado": "CO", "Connecticut": "CT", "Delaware": "DE",
    "District of Columbia": "DC", "Florida": "FL", "Georgia": "GA", "Hawaii": "HI",
    "Idaho": "ID", "Illinois": "IL", "Indiana": "IN", "Iowa": "IA",
    "Kansas": "KS", "Kentucky": "KY", "Louisiana": "LA", "Maine": "ME",
    "Maryland": "MD", "Massachusetts": "MA", "Michigan": "MI", "Minnesota": "MN",
    "Mississippi": "MS", "Missouri": "MO", "Montana": "MT", "Nebraska": "NE",
    "Nevada": "NV", "New Hampshire": "NH", "New Jersey": "NJ", "New Mexico": "NM",
    "New York": "NY", "North Carolina": "NC", "North Dakota": "ND", "Ohio": "OH",
    "Oklahoma": "OK", "Oregon": "OR", "Pennsylvania": "PA", "Rhode Island": "RI",
    "South Carolina": "SC", "South Dakota": "SD", "Tennessee": "TN", "Texas": "TX",
    "Utah": "UT", "Vermont": "VT", "Virginia": "VA", "Washington": "WA",
    "West Virginia": "WV", "Wisconsin": "WI", "Wyoming": "WY",
}

STATE_ABBREVIATIONS = set(US_STATES.values())

_STATES_BY_LOWER_NAME = {name.lower(): abbr for name, abbr in US_STATES.items()}


def to_decimal(amount: Number) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def to_cents(amount: Number) -> int:
    """
    Convert a dollar amount to integer cents, rounding half up.

    >>> to_cents(55)
    5500
    >>> to_cents(19.995)
    2000
    """
    cents = to_decimal(amount) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def covers_amount(amount_cents: Optional[int], currency: Optional[str], due: Number) -> bool:
    """True when a USD charge of ``amount_cents`` pays at least ``due`` dollars."""
    return (currency or "").lower() == "usd" and (amount_cents or 0) >= to_cents(due)


def format_currency(amount: Number, cents: bool = True) -> str:
    """
    Format a dollar amount for display.

    Args:
        amount: Amount in dollars
        cents: Whether to include the cents part

    Returns:
        String such as "$1,250.00" (or "$1,250" without cents)
    """
    value = to_decimal(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)
    if cents:
        return f"{sign}${value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,.2f}"
    return f"{sign}${value.quantize(Decimal('1'), rounding=ROUND_HALF_UP):,.0f}"


def format_price_range(price: Number) -> str:
    """Monthly rent label, e.g. "$1,250/mo"."""
    return f"{format_currency(price, cents=False)}/mo"


def _format_count(value: Number) -> str:
    number = to_decimal(value)
    if number == number.to_integral_value():
        return str(int(number))
    return f"{number.normalize()}"


def format_floor_plan(bedrooms: int, bathrooms: Number) -> str:
    """
    Short floor plan label.

    >>> format_floor_plan(2, 1)
    '2BR/1BA'
    >>> format_floor_plan(0, 1)
    'Studio'
    """
    if not bedrooms:
        return "Studio"
    return f"{bedrooms}BR/{_format_count(bathrooms)}BA"


def format_date(value: Optional[Union[date, datetime, str]]) -> str:
    """
    Long US date, e.g. "January 5, 2025". Accepts ISO strings.
    Returns an empty string for missing values.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def digits_only(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def format_phone(value: str) -> str:
    """
    Format a US phone number as "(555) 123-4567".
    Partial input is formatted as far as it goes; a leading country code 1 is dropped.
    """
    numbers = digits_only(value)
    if len(numbers) == 11 and numbers.startswith("1"):
        numbers = numbers[1:]
    numbers = numbers[:10]
    if len(numbers) <= 3:
        return numbers
    if len(numbers) <= 6:
        return f"({numbers[:3]}) {numbers[3:]}"
    return f"({numbers[:3]}) {numbers[3:6]}-{numbers[6:]}"


def normalize_state(value: Optional[str]) -> Optional[str]:
    """
    Return the two-letter abbreviation for a US state name or abbreviation.
    Unknown values are returned unchanged (stripped).
    """
    if not value:
        return value
    cleaned = value.strip()
    if cleaned.upper() in STATE_ABBREVIATIONS:
        return cleaned.upper()
    return _STATES_BY_LOWER_NAME.get(cleaned.lower(), cleaned)
