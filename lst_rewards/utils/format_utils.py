"""Operator-facing output for the command line."""

from decimal import Decimal
from typing import Iterable, Optional, Tuple

from lst_rewards.utils.config import LAMPORTS_PER_SOL

SEPARATOR = "=" * 80


def lamports_to_sol(lamports: int) -> str:
    """Render lamports as SOL with full precision, e.g. ``1.500000000 SOL``."""
    sol = Decimal(lamports) / Decimal(LAMPORTS_PER_SOL)
    return f"{sol:.9f} SOL"


def format_pct(pct: float) -> str:
    return f"{pct:g}%"


def print_section(title: str, rows: Iterable[Tuple[str, object]], footer: Optional[str] = None) -> None:
    """Print a titled block of ``label: value`` lines between separators."""
    rows = list(rows)
    width = max((len(label) for label, _ in rows), default=0)

    print(SEPARATOR)
    print(title)
    print(SEPARATOR)
    for label, value in rows:
        print(f"{label.ljust(width)} : {value}")
    if footer:
        print(SEPARATOR)
        print(footer)
    print(SEPARATOR)
