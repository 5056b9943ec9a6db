"""Undo the G function on recovered round keys to reach master-key relations."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from typing import NamedTuple

from seedsca.tables import INVS, KC

_WORD_MASK = 0xFFFFFFFF
_LOW24 = 0x00FFFFFF

DEFAULT_ROUND_KEYS = (0xC119F584, 0x5AE033A0, 0x62947390, 0xA600AD14)
DEFAULT_RELATION_WORDS = (
    0x00010203, 0x04050607, 0x08090A0B, 0x0C0D0E0F, 0x07000102, 0x03040506,
)


class _KeySums(NamedTuple):
    a_plus_c: int
    b_minus_d: int
    a_rot_plus_c: int
    b_rot_minus_d: int
    sum_left: int
    sum_left_shifted: int


def inverse_g(value: int) -> int:
    """Return the 32-bit word x with g_function(x) == value."""
    if not 0 <= value <= _WORD_MASK:
        raise ValueError(f"value out of 32-bit range: {value:#x}")
    z0, z1, z2, z3 = value & 0xFF, (value >> 8) & 0xFF, (value >> 16) & 0xFF, value >> 24
    a = z0 ^ z1 ^ z2
    b = z0 ^ z1 ^ z3
    c = z0 ^ z2 ^ z3
    d = z1 ^ z2 ^ z3
    y0 = INVS[0][(a & 0xC0) ^ (b & 0x30) ^ (c & 0x0C) ^ (d & 0x03)]
    y1 = INVS[1][(a & 0x03) ^ (b & 0xC0) ^ (c & 0x30) ^ (d & 0x0C)]
    y2 = INVS[0][(a & 0x0C) ^ (b & 0x03) ^ (c & 0xC0) ^ (d & 0x30)]
    y3 = INVS[1][(a & 0x30) ^ (b & 0x0C) ^ (c & 0x03) ^ (d & 0xC0)]
    return (y3 << 24) | (y2 << 16) | (y1 << 8) | y0


def undo_round_keys(kl: int, kr: int, round_index: int) -> tuple[int, int]:
    """Turn round key (KL, KR) of a 0-based round into (A + C, B - D) mod 2**32."""
    if not 0 <= round_index < len(KC):
        raise ValueError(f"round index must be in 0..{len(KC) - 1}, got {round_index}")
    constant = KC[round_index]
    return (
        (inverse_g(kl) + constant) & _WORD_MASK,
        (inverse_g(kr) - constant) & _WORD_MASK,
    )


def recover_key_sums(kl1: int, kr1: int, kl2: int, kr2: int) -> _KeySums:
    """Undo the first two round keys and combine the left-half sums."""
    a_plus_c, b_minus_d = undo_round_keys(kl1, kr1, 0)
    a_rot_plus_c, b_rot_minus_d = undo_round_keys(kl2, kr2, 1)
    sum_left = (a_plus_c + a_rot_plus_c) & _WORD_MASK
    return _KeySums(a_plus_c, b_minus_d, a_rot_plus_c, b_rot_minus_d,
                    sum_left, sum_left >> 8)


def relation_words(a: int, b: int, c: int, d: int,
                   a_rot: int, b_rot: int) -> tuple[int, int, int, int]:
    """Return the low-24-bit words linking the key words and their rotated forms."""
    m1 = (a + c) & _WORD_MASK
    m2 = (a_rot + c) & _WORD_MASK
    m3 = (b - d) & _WORD_MASK
    m4 = (b_rot - d) & _WORD_MASK
    return (
        (m1 + m4) & _LOW24,
        (m2 + m3) & _LOW24,
        b_rot & _LOW24,
        (b & 0xFFFFFF00) >> 8,
    )


def _word(text: str) -> int:
    try:
        value = int(text, 16)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a hex word: {text!r}") from exc
    if not 0 <= value <= _WORD_MASK:
        raise argparse.ArgumentTypeError(f"out of 32-bit range: {text!r}")
    return value


def main(argv: Sequence[str] | None = None) -> int:
    """Print the key relations recovered from round keys, or the relation words."""
    parser = argparse.ArgumentParser(description="Recover SEED master-key relations.")
    commands = parser.add_subparsers(dest="command")
    keys = commands.add_parser("keys", help="undo the first two round keys")
    for name, default in zip(("kl1", "kr1", "kl2", "kr2"), DEFAULT_ROUND_KEYS):
        keys.add_argument(f"--{name}", type=_word, default=default)
    relation = commands.add_parser("relation", help="print the key-word relations")
    for name, default in zip(("a", "b", "c", "d", "a_rot", "b_rot"), DEFAULT_RELATION_WORDS):
        relation.add_argument(f"--{name.replace('_', '-')}", dest=name,
                              type=_word, default=default)
    parser.set_defaults(command="keys", **dict(zip(("kl1", "kr1", "kl2", "kr2"),
                                                   DEFAULT_ROUND_KEYS)))
    args = parser.parse_args(argv)

    if args.command == "relation":
        for word in relation_words(args.a, args.b, args.c, args.d, args.a_rot, args.b_rot):
            print(f"{word:08X}")
        return 0

    sums = recover_key_sums(args.kl1, args.kr1, args.kl2, args.kr2)
    print(f"{sums.a_plus_c:08X} {sums.b_minus_d:08X} "
          f"{sums.a_rot_plus_c:08X} {sums.b_rot_minus_d:08X}")
    print(f"{sums.sum_left:08X} {sums.sum_left_shifted:08X}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())