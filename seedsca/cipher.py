"""The SEED block cipher: key schedule, round function and block encryption."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from seedsca.tables import KC, g_function

_WORD_MASK = 0xFFFFFFFF
BLOCK_SIZE = 16
ROUNDS = 16

DEFAULT_KEY = bytes(16)
DEFAULT_PLAINTEXT = bytes.fromhex("a3ea4c338a1652a3d3b3738b1af58446")

RoundKeys = Sequence[tuple[int, int]]


def _as_block(data: bytes | Sequence[int], what: str) -> bytes:
    block = bytes(data)
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"{what} must be {BLOCK_SIZE} bytes, got {len(block)}")
    return block


def pack_word(data: bytes | Sequence[int]) -> int:
    """Read four bytes as a big-endian 32-bit word."""
    raw = bytes(data)
    if len(raw) != 4:
        raise ValueError(f"a word needs exactly 4 bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


def unpack_word(word: int) -> bytes:
    """Write a 32-bit word as four big-endian bytes."""
    if not 0 <= word <= _WORD_MASK:
        raise ValueError(f"word out of 32-bit range: {word:#x}")
    return word.to_bytes(4, "big")


def key_schedule(master_key: bytes | Sequence[int]) -> tuple[tuple[int, int], ...]:
    """Derive the sixteen (KL, KR) round-key pairs from a 16-byte master key."""
    key = _as_block(master_key, "master key")
    a, b, c, d = (pack_word(key[i:i + 4]) for i in range(0, BLOCK_SIZE, 4))
    round_keys = []
    for number, constant in enumerate(KC, start=1):
        kl = g_function((a + c - constant) & _WORD_MASK)
        kr = g_function((b - d + constant) & _WORD_MASK)
        if number % 2 == 1:
            a, b = (
                ((a >> 8) | (b << 24)) & _WORD_MASK,
                ((b >> 8) | (a << 24)) & _WORD_MASK,
            )
        else:
            c, d = (
                ((c << 8) | (d >> 24)) & _WORD_MASK,
                ((d << 8) | (c >> 24)) & _WORD_MASK,
            )
        round_keys.append((kl, kr))
    return tuple(round_keys)


def round_function(r0: int, r1: int, k0: int, k1: int) -> tuple[int, int]:
    """Apply the SEED F function to the right half (r0, r1) under round key (k0, k1)."""
    c = (r0 ^ k0) & _WORD_MASK
    d = (r1 ^ k1) & _WORD_MASK
    d = g_function(d ^ c)
    c = g_function(c + d)
    d = g_function(c + d)
    c = (c + d) & _WORD_MASK
    return c, d


def encrypt_block(plaintext: bytes | Sequence[int], round_keys: RoundKeys) -> bytes:
    """Encrypt one 16-byte block with the sixteen round-key pairs."""
    block = _as_block(plaintext, "plaintext")
    keys = list(round_keys)
    if len(keys) != ROUNDS:
        raise ValueError(f"expected {ROUNDS} round-key pairs, got {len(keys)}")
    l0, l1, r0, r1 = (pack_word(block[i:i + 4]) for i in range(0, BLOCK_SIZE, 4))
    for k0, k1 in keys[:-1]:
        c, d = round_function(r0, r1, k0, k1)
        l0, l1, r0, r1 = r0, r1, l0 ^ c, l1 ^ d
    c, d = round_function(r0, r1, *keys[-1])
    l0 ^= c
    l1 ^= d
    return b"".join(unpack_word(w) for w in (l0, l1, r0, r1))


def first_round_output(plaintext: bytes | Sequence[int], k0: int, k1: int) -> bytes:
    """Return the 16-byte state after the first round under round key (k0, k1)."""
    block = _as_block(plaintext, "plaintext")
    l0, l1, r0, r1 = (pack_word(block[i:i + 4]) for i in range(0, BLOCK_SIZE, 4))
    c, d = round_function(r0, r1, k0, k1)
    return b"".join(unpack_word(w) for w in (r0, r1, l0 ^ c, l1 ^ d))


def format_block(block: bytes | Sequence[int]) -> str:
    """Render bytes as space-separated upper-case hex pairs."""
    return " ".join(f"{b:02X}" for b in bytes(block))


def _hex_block(text: str) -> bytes:
    try:
        block = bytes.fromhex(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a hex string: {text!r}") from exc
    if len(block) != BLOCK_SIZE:
        raise argparse.ArgumentTypeError(f"expected {BLOCK_SIZE} bytes, got {len(block)}")
    return block


def main(argv: Sequence[str] | None = None) -> int:
    """Print the round keys and the encryption of one block."""
    parser = argparse.ArgumentParser(description="Encrypt one block with SEED.")
    parser.add_argument("--key", type=_hex_block, default=DEFAULT_KEY,
                        help="master key as 32 hex digits")
    parser.add_argument("--plaintext", type=_hex_block, default=DEFAULT_PLAINTEXT,
                        help="plaintext block as 32 hex digits")
    args = parser.parse_args(argv)

    round_keys = key_schedule(args.key)
    for number, (kl, kr) in enumerate(round_keys, start=1):
        print(f"{number:02d} KL : {kl:08X}, KR : {kr:08X}")
    ciphertext = encrypt_block(args.plaintext, round_keys)
    print(f"Plaintext  : {format_block(args.plaintext)}")
    print(f"Ciphertext : {format_block(ciphertext)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())