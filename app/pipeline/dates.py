"""
Flexible date parsing for spreadsheet cells.

Spreadsheets arrive with day-first dates ("15/03/2024"), ISO dates, dates
with a time of day, Spanish or English month names ("15 de marzo de 2024",
"Mar-24") or a bare month number. Parsing is driven by static locale
profiles instead of the host locale so results do not depend on where the
server runs. Nothing here raises on malformed input.
"""

import datetime
import re
import unicodedata
from typing import NamedTuple, Optional

from django.conf import settings


class LocaleProfile(NamedTuple):
    name: str
    day_first: bool
    months: dict


_SPANISH_MONTHS = {
    'enero': 1, 'ene': 1,
    'febrero': 2, 'feb': 2,
    'marzo': 3, 'mar': 3,
    'abril': 4, 'abr': 4,
    'mayo': 5, 'may': 5,
    'junio': 6, 'jun': 6,
    'julio': 7, 'jul': 7,
    'agosto': 8, 'ago': 8,
    'septiembre': 9, 'setiembre': 9, 'sep': 9, 'sept': 9, 'set': 9,
    'octubre': 10, 'oct': 10,
    'noviembre': 11, 'nov': 11,
    'diciembre': 12, 'dic': 12,
}

_ENGLISH_MONTHS = {
    'january': 1, 'jan': 1,
    'february': 2, 'feb': 2,
    'march': 3, 'mar': 3,
    'april': 4, 'apr': 4,
    'may': 5,
    'june': 6, 'jun': 6,
    'july': 7, 'jul': 7,
    'august': 8, 'aug': 8,
    'september': 9, 'sep': 9, 'sept': 9,
    'october': 10, 'oct': 10,
    'november': 11, 'nov': 11,
    'december': 12, 'dec': 12,
}

LOCALE_PROFILES = {
    'es-MX': LocaleProfile('es-MX', True, _SPANISH_MONTHS),
    'es-ES': LocaleProfile('es-ES', True, _SPANISH_MONTHS),
    'en-US': LocaleProfile('en-US', False, _ENGLISH_MONTHS),
    'en-GB': LocaleProfile('en-GB', True, _ENGLISH_MONTHS),
    'invariant': LocaleProfile('invariant', False, _ENGLISH_MONTHS),
}

DEFAULT_LOCALES = ('es-MX', 'es-ES', 'en-US')

# dd/MM/yyyy, d/M/yyyy, dd-MM-yyyy, d-M-yyyy and their 2-digit-year variants
_DAY_FIRST_RE = re.compile(r'^(\d{1,2})([/-])(\d{1,2})\2(\d{4}|\d{2})$')

# Optional time of day and offset; matched against lowercased text
_TIME_PART = r'(?:[t\s]+\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?\s*(?:[ap]\.?\s?m\.?)?\s*(?:z|[+-]\d{2}:?\d{2})?)?'

_ISO_RE = re.compile(r'^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})' + _TIME_PART + r'$')
_NUMERIC_RE = re.compile(r'^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4}|\d{2})' + _TIME_PART + r'$')
# "15 de marzo de 2024", "15-mar-2024", "15 March 2024"
_DAY_MONTH_NAME_RE = re.compile(
    r'^(\d{1,2})[\s./-]*(?:de\s+)?([a-z]+)\.?[\s./,-]*(?:del?\s+)?(\d{4}|\d{2})' + _TIME_PART + r'$'
)
# "March 15, 2024", "marzo 15 2024"
_MONTH_NAME_DAY_RE = re.compile(r'^([a-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})' + _TIME_PART + r'$')

# Month-level precision: "marzo 2024", "Mar 2024", "marzo de 2024"
_MONTH_NAME_YEAR_RE = re.compile(r'^([a-z]+)\.?[\s/-]+(?:del?\s+)?(\d{4})$')
_MONTH_SLASH_YEAR_RE = re.compile(r'^(\d{1,2})/(\d{4})$')
_MONTH_DASH_YY_RE = re.compile(r'^(\d{1,2})-(\d{2})$')


def _expand_year(raw_year):
    year = int(raw_year)
    if len(raw_year) <= 2:
        # Two-digit years: 00-49 -> 2000s, 50-99 -> 1900s
        year += 2000 if year < 50 else 1900
    return year


def _make_date(year, month, day):
    try:
        return datetime.date(year, month, day)
    except ValueError:
        return None


def _fold(text):
    """Lowercase and strip accents so month names match their table entries."""
    decomposed = unicodedata.normalize('NFD', text.lower())
    return ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')


def locale_chain(names=None):
    """
    Resolve configured locale names into profiles, invariant always last.
    Unknown names are ignored.
    """
    if names is None:
        names = getattr(settings, 'INGEST_DATE_LOCALES', None) or DEFAULT_LOCALES
    chain = [LOCALE_PROFILES[name] for name in names if name in LOCALE_PROFILES]
    chain.append(LOCALE_PROFILES['invariant'])
    return chain


def _parse_day_first(text):
    m = _DAY_FIRST_RE.match(text)
    if not m:
        return None
    day, _sep, month, year = m.groups()
    return _make_date(_expand_year(year), int(month), int(day))


def _parse_general(text, profile):
    folded = _fold(text)

    m = _ISO_RE.match(folded)
    if m:
        year, month, day = m.groups()
        return _make_date(int(year), int(month), int(day))

    m = _NUMERIC_RE.match(folded)
    if m:
        first, second, year = m.groups()
        day, month = (first, second) if profile.day_first else (second, first)
        return _make_date(_expand_year(year), int(month), int(day))

    m = _DAY_MONTH_NAME_RE.match(folded)
    if m:
        day, month_name, year = m.groups()
        month = profile.months.get(month_name)
        if month:
            return _make_date(_expand_year(year), month, int(day))

    m = _MONTH_NAME_DAY_RE.match(folded)
    if m:
        month_name, day, year = m.groups()
        month = profile.months.get(month_name)
        if month:
            return _make_date(int(year), month, int(day))

    return None


def _parse_month_level(text, profile):
    folded = _fold(text)

    m = _MONTH_NAME_YEAR_RE.match(folded)
    if m:
        month_name, year = m.groups()
        month = profile.months.get(month_name)
        if month:
            return _make_date(int(year), month, 1)

    m = _MONTH_SLASH_YEAR_RE.match(folded)
    if m:
        month, year = m.groups()
        return _make_date(int(year), int(month), 1)

    m = _MONTH_DASH_YY_RE.match(folded)
    if m:
        month, year = m.groups()
        return _make_date(_expand_year(year), int(month), 1)

    return None


def parse_flexible_date(raw, locales=None) -> Optional[datetime.date]:
    """
    Parse a cell into a calendar date, or None.

    Explicit day-first numeric formats are tried first whatever the chain
    holds; then general parsing runs locale by locale. Time of day and
    offsets are discarded, never converted.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime.datetime):
        return raw.date()
    if isinstance(raw, datetime.date):
        return raw

    text = str(raw).strip()
    if not text:
        return None

    parsed = _parse_day_first(text)
    if parsed:
        return parsed

    for profile in locale_chain(locales):
        parsed = _parse_general(text, profile)
        if parsed:
            return parsed

    return None


def parse_month_value(raw, fallback, locales=None) -> datetime.date:
    """
    Resolve the effective month of a row. Never returns None.

    Order: any full date, then month-level forms ("marzo 2024", "03/2024",
    "3-24"), then a bare month number 1-12 in the fallback's year, and
    finally the first day of the fallback's month.
    """
    if isinstance(fallback, datetime.datetime):
        fallback = fallback.date()

    text = '' if raw is None else str(raw).strip()
    if text:
        parsed = parse_flexible_date(text, locales)
        if parsed:
            return parsed

        for profile in locale_chain(locales):
            parsed = _parse_month_level(text, profile)
            if parsed:
                return parsed

        # isdigit() also accepts superscripts that int() rejects
        if text.isdecimal() and 1 <= int(text) <= 12:
            return datetime.date(fallback.year, int(text), 1)

    return datetime.date(fallback.year, fallback.month, 1)


def normalize_date_value(raw, locales=None) -> Optional[str]:
    """Render a parseable date as yyyy-mm-dd; pass anything else through trimmed."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None

    parsed = parse_flexible_date(text, locales)
    if parsed:
        return parsed.strftime('%Y-%m-%d')
    return text
