"""Round identifiers.

A round id concatenates the academic year and the term digit:
year=2567, term=1 -> 25671.
"""

from __future__ import annotations

TERM_LABELS = {
    "1": "ภาคเรียนที่ 1",
    "2": "ภาคเรียนที่ 2",
    "3": "ภาคเรียนฤดูร้อน",
}

UNSPECIFIED_ROUND_LABEL = "ไม่ระบุรอบ"


def compose_round_id(year: int, term: int) -> int:
    """Build a round id from year and term.

    Raises:
        ValueError: If year is not four digits or term is not a single digit.
    """
    if not 1000 <= year <= 9999:
        raise ValueError(f"Year must have four digits: {year}")
    if not 0 <= term <= 9:
        raise ValueError(f"Term must be a single digit: {term}")
    return int(f"{year}{term}")


def split_round_id(round_id: int | str) -> tuple[str, str]:
    """Split a round id into (year, term) strings.

    Ids shorter than five characters carry no term.
    """
    text = str(round_id)
    if len(text) >= 5:
        return text[:4], text[4:]
    return text, ""


def term_label(term: int | str) -> str:
    """Human-readable term label."""
    text = str(term)
    if text in TERM_LABELS:
        return TERM_LABELS[text]
    return f"ภาคเรียนที่ {text}" if text else ""


def format_round_label(round_id: int | str | None) -> str:
    """Human-readable label for a round id."""
    if not round_id:
        return UNSPECIFIED_ROUND_LABEL
    year, term = split_round_id(round_id)
    label = term_label(term)
    return f"ปีการศึกษา {year} | {label}" if label else f"ปีการศึกษา {year}"
