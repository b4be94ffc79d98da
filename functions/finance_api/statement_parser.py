from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Optional

DATE_RE = re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}")
# Optional currency sign, then digits with optional thousands commas and fraction.
AMOUNT_RE = re.compile(r"[$€£¥]?(\d[\d,]*(?:\.\d*)?)")


@dataclass(frozen=True)
class StatementLine:
    date: str
    description: str
    amount: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _parse_amount(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def parse_line(line: str) -> Optional[StatementLine]:
    """
    Pull (date, amount) out of one statement line; the rest is the description.

    The first date-shaped token wins, then the first number-shaped token in
    what is left of the line. Lines missing either yield None.
    """
    if not line.strip():
        return None

    date_match = DATE_RE.search(line)
    if date_match is None:
        return None
    date_str = date_match.group(0)
    rest = line[: date_match.start()] + line[date_match.end() :]

    amount_match = AMOUNT_RE.search(rest)
    if amount_match is None:
        return None
    amount = _parse_amount(amount_match.group(1))
    if amount is None:
        return None

    description = (rest[: amount_match.start()] + rest[amount_match.end() :]).strip()
    return StatementLine(date=date_str, description=description, amount=amount)


def iter_statement_lines(text: str) -> Iterator[StatementLine]:
    for line in text.split("\n"):
        parsed = parse_line(line)
        if parsed is not None:
            yield parsed


def parse_statement(text: str) -> List[StatementLine]:
    return list(iter_statement_lines(text))


def decode_upload(raw: bytes) -> str:
    # Bank exports are usually UTF-8, sometimes with a BOM; never fail on bad bytes.
    return raw.decode("utf-8-sig", errors="replace")
