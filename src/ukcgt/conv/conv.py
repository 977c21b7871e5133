from __future__ import annotations

import datetime as dt
import logging
import re
from decimal import Decimal, InvalidOperation

NUM_CLEAN_RE = re.compile(r"[,\s£$€]")  # thousands separators, spaces, currency signs

ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:$|[ T,])")
SLASH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
DASH_DMY_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")

# Cells that stand for "no value"; elided ones mean data was cut from the export.
BLANK_MARKERS = frozenset({"", "-", "--"})
ELIDED_MARKERS = frozenset({"...", "N/A", "n/a"})

_TEXT_DATE_FORMATS = ("%d %b %Y", "%d %B %Y", "%b %d %Y", "%B %d %Y")

logger = logging.getLogger(__name__)


def is_placeholder(value: object) -> bool:
    """True for missing cells: None, blanks, dashes and elided markers."""
    if value is None:
        return True
    if not isinstance(value, str):
        return False
    text = value.strip()
    return text in BLANK_MARKERS or text in ELIDED_MARKERS


def to_dec_strict(value: str | int | float | Decimal | None) -> Decimal:
    """Read a finite number from a cell, raising ``ValueError`` otherwise.

    Thousands separators, spaces and currency signs are ignored. NaN and
    infinities are refused whatever type they arrive as.
    """
    if value is None:
        raise ValueError("Value is None")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        text = value.strip()
        if not text:
            raise ValueError("Value is empty string")
        if is_placeholder(text):
            raise ValueError(f"Value is a placeholder: {text!r}")
        try:
            number = Decimal(NUM_CLEAN_RE.sub("", text))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid decimal format: {value!r}") from exc
    if not number.is_finite():
        raise ValueError(f"Value is not finite: {value!r}")
    return number


def to_dec(
    value: str | int | float | Decimal | None, default: Decimal = Decimal("0")
) -> Decimal:
    """Lenient counterpart of ``to_dec_strict``: falls back to ``default``.

    Only elided and unreadable cells are logged.
    """
    if is_placeholder(value):
        if value is not None and value.strip() in ELIDED_MARKERS:
            logger.warning(
                'Encountered elided/unavailable value "%s"; treating as %s.',
                value.strip(),
                default,
            )
        return default
    try:
        return to_dec_strict(value)
    except ValueError as exc:
        logger.error("Failed to parse number from %r (%s); using %s", value, exc, default)
        return default


def parse_trade_date(value: str | dt.date | None) -> dt.date | None:
    """Parse a broker date into a calendar date, or None when it cannot be read.

    Accepted shapes:
      - ``YYYY-MM-DD`` optionally followed by a time (``T``, space or ``, ``)
      - ``A/B/YYYY``: A > 12 means A is the day (DD/MM/YYYY); otherwise
        B > 12 means B is the day (MM/DD/YYYY); when both are <= 12 the
        month-first US ordering is assumed
      - ``DD-MM-YYYY``
      - textual forms such as ``6 Apr 2024`` or ``Apr 6, 2024``

    The slash heuristic is applied uniformly, regardless of broker.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value

    s = str(value).strip()
    if not s:
        return None

    try:
        m = ISO_RE.match(s)
        if m:
            year, month, day = (int(g) for g in m.groups())
            return dt.date(year, month, day)

        m = SLASH_RE.match(s)
        if m:
            first, second, year = (int(g) for g in m.groups())
            if first > 12:
                return dt.date(year, second, first)
            return dt.date(year, first, second)

        m = DASH_DMY_RE.match(s)
        if m:
            day, month, year = (int(g) for g in m.groups())
            return dt.date(year, month, day)
    except ValueError:
        logger.warning("Impossible calendar date: %r", s)
        return None

    cleaned = s.replace(",", " ")
    cleaned = " ".join(cleaned.split())
    for fmt in _TEXT_DATE_FORMATS:
        try:
            return dt.datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue

    logger.warning("Unable to parse date: %r", s)
    return None
