"""Barcode payload decoding into shipment identifier fields.

Two strategies are tried against the cleaned payload: structured GS1-128
parsing, then a best-effort PDF417 pattern search when GS1-128 produced no
tracking number.
"""

import logging
import re

from .models import ExtractedFields

logger = logging.getLogger(__name__)

# GS1-128 Application Identifiers
AI_TRACKING_NUMBER = "00"
AI_ACCOUNT_NUMBER = "420"
AI_ADDRESS = "410"
AI_STREET = "411"

AI_FIELDS: dict[str, str] = {
    AI_TRACKING_NUMBER: "tracking_number",
    AI_ACCOUNT_NUMBER: "ani",
    AI_ADDRESS: "adi",
    AI_STREET: "rsi",
}

MAX_AI_DIGITS = 4
TRACKING_VALUE_MAX = 18
DEFAULT_VALUE_MAX = 20

# PDF417 tracking-number patterns, in priority order.
PDF417_TRACKING_PATTERNS = (
    re.compile(r"\d{12}"),
    re.compile(r"\d{18}"),
    re.compile(r"1Z[0-9A-Z]{16}"),  # UPS
    # Spaced 4-4-4 format. Payloads are matched after cleaning has removed
    # all whitespace, so this never matches; kept to preserve pattern order.
    re.compile(r"[0-9]{4}\s[0-9]{4}\s[0-9]{4}"),
)
PDF417_ACCOUNT_PATTERN = re.compile(r"\d{9,10}")

_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def clean_payload(raw: str) -> str:
    """Trim, uppercase and drop everything but ASCII letters and digits."""
    return _NON_ALNUM.sub("", raw.strip().upper())


def extract_fields(raw: str) -> ExtractedFields:
    """Extract tracking, account, address and street fields from a payload.

    Never raises; a payload with no recognizable structure yields an
    ExtractedFields with every field set to None.
    """
    cleaned = clean_payload(raw)
    fields = parse_gs1_128(cleaned) or ExtractedFields()

    if fields.tracking_number is None:
        fallback = parse_pdf417(cleaned)
        if fallback is not None:
            fields = fallback

    if fields.is_empty:
        logger.debug("No fields extracted from payload %r", raw)
    return fields


def parse_gs1_128(data: str) -> ExtractedFields | None:
    """Parse a cleaned payload as a run of (AI, value) pairs.

    Returns None if none of the recognized identifiers carried a value.
    """
    found: dict[str, str] = {}
    index = 0
    while index < len(data):
        ai_end = _find_ai_end(data, index)
        if ai_end == index:
            break
        ai = data[index:ai_end]
        value_end = _find_value_end(data, ai_end, ai)
        if value_end > ai_end and ai in AI_FIELDS:
            found[AI_FIELDS[ai]] = data[ai_end:value_end]
        index = value_end

    if not found:
        return None
    return ExtractedFields(**found)


def parse_pdf417(data: str) -> ExtractedFields | None:
    """Heuristic tracking and account number search for PDF417 payloads."""
    tracking_number = None
    for pattern in PDF417_TRACKING_PATTERNS:
        match = pattern.search(data)
        if match:
            tracking_number = match.group(0)
            break

    account = PDF417_ACCOUNT_PATTERN.search(data)
    ani = account.group(0) if account else None

    if tracking_number is None and ani is None:
        return None
    return ExtractedFields(tracking_number=tracking_number, ani=ani)


def _find_ai_end(data: str, start: int) -> int:
    """Return the end of the digit run (at most 4 long) starting at ``start``."""
    index = start
    while index < len(data) and index - start < MAX_AI_DIGITS and _is_digit(data[index]):
        index += 1
    return index


def _find_value_end(data: str, start: int, ai: str) -> int:
    """Return the end of the alphanumeric value following an AI."""
    max_length = TRACKING_VALUE_MAX if ai == AI_TRACKING_NUMBER else DEFAULT_VALUE_MAX
    index = start
    while index < len(data) and index - start < max_length and _is_alnum(data[index]):
        index += 1
    return index


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_alnum(ch: str) -> bool:
    return _is_digit(ch) or "A" <= ch <= "Z"
