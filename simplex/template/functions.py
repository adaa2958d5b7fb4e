"""
Extension pipe sets and keys.

Provides the "number", "string" and "date" pipe sets, registered as
namespaced pipes (${ns:price | number.currency}), and the Math constants
exposed through NUMBER_KEYS.
"""

import math
from datetime import date, datetime
from typing import Any, Callable, Optional, Sequence

from dateutil import parser as date_parser

from ..model.keys import BasicKeyResolver, ConstKeyHandler, Key
from ..model.values import to_int, to_number, to_sequence, to_text, unwrap
from .pipes import PipeSet, collect_numbers


# Function to get current datetime - can be overridden in tests
_get_current_datetime: Callable[[], datetime] = lambda: datetime.now()


def java_to_strftime(java_pattern: str) -> str:
    """
    Convert a Java SimpleDateFormat pattern to a Python strftime format.

    Templates carry Java-style patterns (e.g. 'yyyy-MM-dd', 'MMM dd, yyyy')
    so that the same template strings work unchanged across implementations.

    Java Pattern -> Python strftime mapping:
        yyyy -> %Y  (4-digit year)
        yy -> %y    (2-digit year)
        MMMM -> %B  (full month name)
        MMM -> %b   (abbreviated month name)
        MM -> %m    (2-digit month number)
        dd -> %d    (2-digit day)
        EEEE -> %A  (full weekday name)
        EEE -> %a   (abbreviated weekday name)
        HH -> %H    (hour 0-23)
        hh -> %I    (hour 1-12)
        mm -> %M    (minutes - NOTE: Java uses lowercase!)
        ss -> %S    (seconds)
        a -> %p     (AM/PM)
        Z -> %z     (UTC offset)
        z -> %Z     (timezone name)

    Examples:
        >>> java_to_strftime('yyyy-MM-dd')
        '%Y-%m-%d'
        >>> java_to_strftime('MMM dd, yyyy')
        '%b %d, %Y'
        >>> java_to_strftime('HH:mm')
        '%H:%M'
    """
    mappings = {
        'yyyy': '%Y',
        'yy': '%y',
        'MMMM': '%B',
        'MMM': '%b',
        'MM': '%m',
        'dd': '%d',
        'EEEE': '%A',
        'EEE': '%a',
        'HH': '%H',
        'hh': '%I',
        'mm': '%M',
        'ss': '%S',
        'a': '%p',
        'Z': '%z',
        'z': '%Z'
    }

    # Scan left to right, longest token first, so output codes are never rescanned
    tokens = sorted(mappings, key=len, reverse=True)
    result = []
    i = 0
    while i < len(java_pattern):
        for token in tokens:
            if java_pattern.startswith(token, i):
                result.append(mappings[token])
                i += len(token)
                break
        else:
            result.append(java_pattern[i])
            i += 1
    return "".join(result)


def _to_datetime(value: Any) -> Optional[datetime]:
    value = unwrap(value)
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def _days_between(value: Any) -> Optional[int]:
    """Whole days from value to today; positive when value is in the past."""
    dt = _to_datetime(value)
    if dt is None:
        return None
    if dt.tzinfo is not None:
        today = _get_current_datetime().replace(tzinfo=dt.tzinfo, hour=0, minute=0, second=0, microsecond=0)
    else:
        today = _get_current_datetime().replace(hour=0, minute=0, second=0, microsecond=0)
    dt = dt.replace(hour=0, minute=0, second=0, microsecond=0)
    return (today - dt).days


class Numbers:
    """Numeric pipes built on the lenient number parse."""

    @staticmethod
    def to_number(value: Any, args: Sequence[str]) -> Optional[float]:
        return to_number(value)

    @staticmethod
    def round(value: Any, args: Sequence[str]) -> Optional[float]:
        number = to_number(value)
        if number is None:
            return None
        places = to_int(args[0]) if args else None
        return round(number, places if places is not None else 0)

    @staticmethod
    def sum(value: Any, args: Sequence[str]) -> float:
        """Sum of every element that parses as a number."""
        return float(sum(collect_numbers(value)))

    @staticmethod
    def min_num(value: Any, args: Sequence[str]) -> Optional[float]:
        numbers = collect_numbers(value)
        if not numbers:
            return None
        result = min(numbers)
        places = to_int(args[0]) if args else None
        return round(result, places) if places is not None else result

    @staticmethod
    def currency(value: Any, args: Sequence[str]) -> Optional[str]:
        """
        Format a number with a dollar sign, thousands separators and exactly
        two decimal places.

        Examples:
            1089.99 -> "$1,089.99"
            23 -> "$23.00"
            "$0.47" -> "$0.47"
        """
        value = unwrap(value)
        if isinstance(value, str):
            value = value.replace("$", "")
        number = to_number(value)
        if number is None:
            return None
        return f"${number:,.2f}"


class Strings:
    """Text pipes; non-text input is rendered as text first."""

    @staticmethod
    def upper_case(value: Any, args: Sequence[str]) -> str:
        return to_text(value).upper()

    @staticmethod
    def lower_case(value: Any, args: Sequence[str]) -> str:
        return to_text(value).lower()

    @staticmethod
    def capitalize(value: Any, args: Sequence[str]) -> str:
        text = to_text(value)
        return text[:1].upper() + text[1:]

    @staticmethod
    def trim(value: Any, args: Sequence[str]) -> str:
        return to_text(value).strip()

    @staticmethod
    def split(value: Any, args: Sequence[str]) -> list:
        separator = ":".join(args) if args else ","
        return to_text(value).split(separator)

    @staticmethod
    def join(value: Any, args: Sequence[str]) -> Any:
        separator = ":".join(args) if args else ","
        items = to_sequence(unwrap(value))
        if items is None:
            return to_text(value)
        return separator.join(to_text(item) for item in items)

    @staticmethod
    def prepend(value: Any, args: Sequence[str]) -> str:
        return ":".join(args) + to_text(value)

    @staticmethod
    def append(value: Any, args: Sequence[str]) -> str:
        return to_text(value) + ":".join(args)


class Dates:
    """Date pipes; input is a datetime, a date or any text dateutil parses."""

    @staticmethod
    def format_date(value: Any, args: Sequence[str]) -> Optional[str]:
        """
        Format a date with a Java SimpleDateFormat pattern.

        The pattern is every argument rejoined with ':', so
        ${ns:start | date.formatDate:HH:mm} formats as '%H:%M'.

        Examples:
            '2025-12-01' | formatDate:MMM dd, yyyy -> 'Dec 01, 2025'
        """
        dt = _to_datetime(value)
        if dt is None:
            return None
        pattern = ":".join(args) if args else "yyyy-MM-dd"
        return dt.strftime(java_to_strftime(pattern))

    @staticmethod
    def days_after(value: Any, args: Sequence[str]) -> Optional[int]:
        """
        Number of days after the given date.
        Positive if the date is in the past, negative if in the future.
        """
        return _days_between(value)

    @staticmethod
    def days_from_now(value: Any, args: Sequence[str]) -> Optional[str]:
        """Relative description such as "today", "tomorrow" or "3 days ago"."""
        days = _days_between(value)
        if days is None:
            return None
        delta = -days
        if delta == 0:
            return "today"
        elif delta == 1:
            return "tomorrow"
        elif delta == -1:
            return "yesterday"
        elif delta > 0:
            return f"{delta} days from now"
        else:
            return f"{abs(delta)} days ago"


NUMBER_PIPES = PipeSet("number", {
    "toNumber": Numbers.to_number,
    "round": Numbers.round,
    "sum": Numbers.sum,
    "minNum": Numbers.min_num,
    "currency": Numbers.currency,
})

STRING_PIPES = PipeSet("string", {
    "upperCase": Strings.upper_case,
    "lowerCase": Strings.lower_case,
    "capitalize": Strings.capitalize,
    "trim": Strings.trim,
    "split": Strings.split,
    "join": Strings.join,
    "prepend": Strings.prepend,
    "append": Strings.append,
})

DATE_PIPES = PipeSet("date", {
    "formatDate": Dates.format_date,
    "daysAfter": Dates.days_after,
    "daysFromNow": Dates.days_from_now,
})

NUMBER_KEYS = BasicKeyResolver({
    Key("Math", "PI"): ConstKeyHandler(math.pi),
    Key("Math", "E"): ConstKeyHandler(math.e),
})
