"""Helpers for building, inverting and printing byte substitution tables."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable, Sequence

from seedsca.tables import S

TABLE_SIZE = 256
ROW_WIDTH = 16

DECIMAL_TEMPLATE = "{:03d} "
LOWER_HEX_TEMPLATE = "0x{:02x}, "
UPPER_HEX_TEMPLATE = "0x{:02X}, "


def invert_sbox(table: Sequence[int]) -> tuple[int, ...]:
    """Return the inverse of a permutation table."""
    values = list(table)
    size = len(values)
    inverse: list[int | None] = [None] * size
    for position, value in enumerate(values):
        if not 0 <= value < size:
            raise ValueError(f"table value {value} out of range 0..{size - 1}")
        if inverse[value] is not None:
            raise ValueError(f"table value {value} appears more than once")
        inverse[value] = position
    return tuple(inverse)  # type: ignore[arg-type]


def sbox_from_pairs(pairs: Iterable[tuple[int, int]]) -> tuple[int, ...]:
    """Build a 256-entry table from (index, value) pairs; later pairs win."""
    table: dict[int, int] = {}
    for index, value in pairs:
        if not 0 <= index < TABLE_SIZE:
            raise ValueError(f"index {index} out of range 0..{TABLE_SIZE - 1}")
        table[index] = value
    missing = sorted(set(range(TABLE_SIZE)) - table.keys())
    if missing:
        raise ValueError(f"no value given for indices {missing[:8]}"
                         + (" ..." if len(missing) > 8 else ""))
    return tuple(table[index] for index in range(TABLE_SIZE))


def parse_pairs(text: str) -> list[tuple[int, int]]:
    """Read whitespace-separated integers as (index, value) pairs."""
    try:
        numbers = [int(token) for token in text.split()]
    except ValueError as exc:
        raise ValueError(f"input holds a token that is not an integer: {exc}") from exc
    if len(numbers) % 2:
        raise ValueError("input holds an odd number of integers")
    return list(zip(numbers[0::2], numbers[1::2]))


def format_table(values: Iterable[int], template: str) -> str:
    """Format values with a template, breaking the line after every sixteen."""
    parts = []
    for position, value in enumerate(values, start=1):
        parts.append(template.format(value))
        if position % ROW_WIDTH == 0:
            parts.append("\n")
    return "".join(parts)


def _print_inverses() -> None:
    for number, table in enumerate(S, start=1):
        print(f"INVERSED SBOX #{number}")
        print(format_table(invert_sbox(table), UPPER_HEX_TEMPLATE), end="")


def _print_built(text: str) -> None:
    table = sbox_from_pairs(parse_pairs(text)[:TABLE_SIZE])
    print(format_table(table, DECIMAL_TEMPLATE), end="")
    print(format_table(table, LOWER_HEX_TEMPLATE), end="")


def main(argv: Sequence[str] | None = None) -> int:
    """Print the inverse S-boxes, or build a table from index/value pairs."""
    parser = argparse.ArgumentParser(description="S-box table tools.")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("invert", help="print the inverses of the SEED S-boxes")
    build = commands.add_parser("build", help="build a table from 'index value' pairs")
    build.add_argument("source", nargs="?", default=None,
                       help="file of pairs (standard input if omitted)")
    args = parser.parse_args(argv)

    if args.command == "invert":
        _print_inverses()
        return 0

    if args.source is None:
        text = sys.stdin.read()
    else:
        with open(args.source, encoding="utf-8") as handle:
            text = handle.read()
    try:
        _print_built(text)
    except ValueError as exc:
        parser.error(str(exc))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())