"""Correlation power analysis of the first SEED rounds."""

from __future__ import annotations

import argparse
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from seedsca.tables import S, SS
from seedsca.traces import BLOCK_SIZE, TRACE_COUNT, TRACE_LENGTH, load_plaintexts, load_traces

KEY_CANDIDATES = 256
_WORD_MASK = 0xFFFFFFFF

DEFAULT_AT = 0xBBB82E52
DEFAULT_LK = 0x7C8F8C7E
DEFAULT_RK = 0xC737A22C
DEFAULT_KK = 0x58ED0491

STAGE_WINDOWS = {1: (0, 5000), 2: (0, 6500), 3: (0, 6500), 4: (0, 6500)}

_FORWARD = tuple(range(4))
_BACKWARD = tuple(range(3, -1, -1))
_STAGES: dict[int, tuple[tuple[int, ...], tuple[str, ...]]] = {
    1: (_FORWARD, ()),
    2: (_BACKWARD, ("at",)),
    3: (_FORWARD, ("lk", "rk")),
    4: (_BACKWARD, ("lk", "rk", "kk")),
}

_SBOXES = tuple(np.array(table, dtype=np.uint8) for table in S)
_SS = tuple(np.array(table, dtype=np.uint32) for table in SS)
_POPCOUNT = np.array([bin(v).count("1") for v in range(256)], dtype=np.uint8)

Intermediate = Callable[[int], np.ndarray]


@dataclass(frozen=True)
class ByteResult:
    """The best key guess for one byte and where its correlation peaked."""

    key: int
    correlation: float
    position: int
    curve: np.ndarray = field(repr=False, compare=False)


def hamming_weight(values) -> np.ndarray:
    """Return the number of set bits of each byte."""
    array = np.asarray(values)
    if array.size and (array.min() < 0 or array.max() > 0xFF):
        raise ValueError("hamming_weight expects byte values")
    return _POPCOUNT[array.astype(np.intp)]


class _Moments:
    """Per-sample sums of a trace window, shared by all key guesses."""

    def __init__(self, traces, start: int, end: int) -> None:
        data = np.asarray(traces)
        if data.ndim != 2:
            raise ValueError("traces must be a two-dimensional array")
        self.count, self.length = data.shape
        if not 0 <= start < end <= self.length:
            raise ValueError(f"window {start}..{end} does not fit traces of length {self.length}")
        self.start, self.end = start, end
        self.window = data[:, start:end].astype(np.float64)
        self.sx = self.window.sum(axis=0)
        self.sxx = (self.window * self.window).sum(axis=0)

    def correlate(self, hypotheses) -> np.ndarray:
        h = np.asarray(hypotheses, dtype=np.float64)
        if h.shape != (self.count,):
            raise ValueError(f"expected {self.count} hypotheses, got shape {h.shape}")
        n = float(self.count)
        sy = h.sum()
        syy = (h * h).sum()
        sxy = h @ self.window
        with np.errstate(divide="ignore", invalid="ignore"):
            numerator = n * sxy - self.sx * sy
            denominator = np.sqrt(n * self.sxx - self.sx * self.sx) * np.sqrt(n * syy - sy * sy)
            window_corr = numerator / denominator
        full = np.zeros(self.length)
        full[self.start:self.end] = window_corr
        return full


def correlate(traces, hypotheses, start: int, end: int) -> np.ndarray:
    """Pearson correlation of hypotheses with each sample in [start, end); zero elsewhere."""
    return _Moments(traces, start, end).correlate(hypotheses)


def _attack(moments: _Moments, intermediate: Intermediate,
            on_key: Callable[[int, ByteResult], None] | None) -> ByteResult:
    best = ByteResult(0, 0.0, moments.start, np.zeros(moments.length))
    for key in range(KEY_CANDIDATES):
        curve = moments.correlate(hamming_weight(intermediate(key)))
        magnitude = np.abs(curve[moments.start:moments.end])
        magnitude = np.where(np.isnan(magnitude), -1.0, magnitude)
        offset = int(np.argmax(magnitude))
        if magnitude[offset] > best.correlation:
            best = ByteResult(key, float(magnitude[offset]), moments.start + offset, curve)
        if on_key is not None:
            on_key(key, best)
    return best


def attack_byte(traces, intermediate: Intermediate, start: int, end: int,
                on_key: Callable[[int, ByteResult], None] | None = None) -> ByteResult:
    """Try all 256 key bytes and keep the one whose Hamming-weight model correlates best."""
    return _attack(_Moments(traces, start, end), intermediate, on_key)


def _plaintext_array(plaintexts) -> np.ndarray:
    array = np.asarray(plaintexts, dtype=np.uint8)
    if array.ndim != 2 or array.shape[1] != BLOCK_SIZE:
        raise ValueError(f"plaintexts must have shape (n, {BLOCK_SIZE}), got {array.shape}")
    return array


def _check_index(index: int) -> None:
    if index not in _FORWARD:
        raise ValueError(f"byte index must be 0..3, got {index}")


def _check_key(key: int) -> None:
    if not 0 <= key <= 0xFF:
        raise ValueError(f"key guess must be a byte, got {key}")


def _check_word(name: str, value: int) -> np.uint32:
    if not 0 <= value <= _WORD_MASK:
        raise ValueError(f"{name} out of 32-bit range: {value:#x}")
    return np.uint32(value)


def _word(blocks: np.ndarray, first: int) -> np.ndarray:
    b = blocks[:, first:first + 4].astype(np.uint32)
    return (b[:, 0] << 24) | (b[:, 1] << 16) | (b[:, 2] << 8) | b[:, 3]


def _word_bytes(words: np.ndarray) -> np.ndarray:
    return words.astype(">u4").view(np.uint8).reshape(-1, 4)


def _select_byte(words: np.ndarray, index: int) -> np.ndarray:
    return ((words >> np.uint32(24 - 8 * index)) & np.uint32(0xFF)).astype(np.uint8)


def _g(words: np.ndarray) -> np.ndarray:
    return (_SS[0][words & 0xFF] ^ _SS[1][(words >> 8) & 0xFF]
            ^ _SS[2][(words >> 16) & 0xFF] ^ _SS[3][(words >> 24) & 0xFF])


def _substitute(index: int, values: np.ndarray) -> np.ndarray:
    return _SBOXES[0 if index % 2 else 1][values]


def stage1_intermediate(plaintexts, index: int, key: int) -> np.ndarray:
    """S-box output of R0 ^ R1 ^ key for byte index of the first-round G input."""
    pt = _plaintext_array(plaintexts)
    _check_index(index)
    _check_key(key)
    return _substitute(index, pt[:, index + 8] ^ pt[:, index + 12] ^ np.uint8(key))


class CarryChain:
    """Byte-wise modular addition that carries from one call to the next."""

    def __init__(self) -> None:
        self.carry = 0

    def add(self, index: int, left: int, right: int) -> int:
        """Add two bytes; byte 3 starts a fresh sum, lower indices take the carry."""
        _check_index(index)
        extra = 1 if index != 3 and self.carry > 0xFF else 0
        total = (left + right + extra) & 0xFF
        self.carry = total + right + extra
        return total


def stage2_intermediate(plaintexts, index: int, key: int, at: int,
                        carries: CarryChain) -> np.ndarray:
    """S-box output of the addition of G(R0 ^ R1 ^ at) and R0 ^ key, byte by byte."""
    pt = _plaintext_array(plaintexts)
    _check_index(index)
    _check_key(key)
    mask = _check_word("at", at)
    left = _select_byte(_g(_word(pt, 8) ^ _word(pt, 12) ^ mask), index)
    right = pt[:, index + 8] ^ np.uint8(key)
    sums = np.fromiter(
        (carries.add(index, l, r) for l, r in zip(left.tolist(), right.tolist())),
        dtype=np.uint8, count=len(pt))
    return _substitute(index, sums)


def first_round_state(plaintexts, lk: int, rk: int) -> np.ndarray:
    """The 16-byte state of every block after the first round under key (lk, rk)."""
    pt = _plaintext_array(plaintexts)
    k0 = _check_word("lk", lk)
    k1 = _check_word("rk", rk)
    r0 = _word(pt, 8)
    r1 = _word(pt, 12)
    d = _g(r0 ^ r1 ^ k0 ^ k1)
    c = _g((r0 ^ k0) + d)
    d = _g(c + d)
    c = c + d
    right = np.concatenate([_word_bytes(_word(pt, 0) ^ c), _word_bytes(_word(pt, 4) ^ d)], axis=1)
    return np.concatenate([pt[:, 8:16], right], axis=1)


def stage3_intermediate(plaintexts, index: int, key: int, lk: int, rk: int) -> np.ndarray:
    """S-box output of the second-round R0 ^ R1 ^ key byte."""
    _check_index(index)
    _check_key(key)
    state = first_round_state(plaintexts, lk, rk)
    return _substitute(index, state[:, index + 8] ^ state[:, index + 12] ^ np.uint8(key))


def stage4_intermediate(plaintexts, index: int, key: int, lk: int, rk: int, kk: int,
                        carries: CarryChain) -> np.ndarray:
    """S-box output of the second-round addition of R0 ^ key and G(R0 ^ R1 ^ kk)."""
    _check_index(index)
    _check_key(key)
    mask = _check_word("kk", kk)
    state = first_round_state(plaintexts, lk, rk)
    right = _select_byte(_g(_word(state, 8) ^ _word(state, 12) ^ mask), index)
    left = state[:, index + 8] ^ np.uint8(key)
    sums = np.fromiter(
        (carries.add(index, l, r) for l, r in zip(left.tolist(), right.tolist())),
        dtype=np.uint8, count=len(state))
    return _substitute(index, sums)


def _model(stage: int, pt: np.ndarray, index: int, params: Mapping[str, int],
           carries: CarryChain) -> Intermediate:
    if stage == 1:
        return lambda key: stage1_intermediate(pt, index, key)
    if stage == 2:
        return lambda key: stage2_intermediate(pt, index, key, params["at"], carries)
    if stage == 3:
        return lambda key: stage3_intermediate(pt, index, key, params["lk"], params["rk"])
    return lambda key: stage4_intermediate(pt, index, key, params["lk"], params["rk"],
                                           params["kk"], carries)


def run_stage(traces, plaintexts, stage: int, start: int, end: int,
              params: Mapping[str, int] | None = None) -> dict[int, ByteResult]:
    """Attack the four bytes of one stage; results are keyed by byte in attack order."""
    if stage not in _STAGES:
        raise ValueError(f"stage must be one of {sorted(_STAGES)}, got {stage}")
    order, needed = _STAGES[stage]
    values = dict(params or {})
    missing = [name for name in needed if name not in values]
    if missing:
        raise ValueError(f"stage {stage} needs parameters {missing}")
    pt = _plaintext_array(plaintexts)
    moments = _Moments(traces, start, end)
    if moments.count != len(pt):
        raise ValueError(f"{moments.count} traces but {len(pt)} plaintexts")
    carries = CarryChain()
    return {index: _attack(moments, _model(stage, pt, index, values, carries), None)
            for index in order}


def _hex_word(text: str) -> int:
    try:
        value = int(text, 16)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a hex word: {text!r}") from exc
    if not 0 <= value <= _WORD_MASK:
        raise argparse.ArgumentTypeError(f"out of 32-bit range: {text!r}")
    return value


def main(argv: Sequence[str] | None = None) -> int:
    """Run one attack stage on trace files and report the recovered key bytes."""
    parser = argparse.ArgumentParser(description="Correlation power analysis of SEED.")
    parser.add_argument("stage", type=int, choices=sorted(_STAGES))
    parser.add_argument("--dir", type=Path, default=Path("."), help="data directory")
    parser.add_argument("--traces", default="trace.bin")
    parser.add_argument("--plaintexts", default="plaintext.npy")
    parser.add_argument("--count", type=int, default=TRACE_COUNT)
    parser.add_argument("--length", type=int, default=TRACE_LENGTH)
    parser.add_argument("--start", type=int, default=None)
    parser.add_argument("--end", type=int, default=None)
    parser.add_argument("--at", type=_hex_word, default=DEFAULT_AT)
    parser.add_argument("--lk", type=_hex_word, default=DEFAULT_LK)
    parser.add_argument("--rk", type=_hex_word, default=DEFAULT_RK)
    parser.add_argument("--kk", type=_hex_word, default=DEFAULT_KK)
    parser.add_argument("--no-save", action="store_true",
                        help="do not write correlation curves")
    args = parser.parse_args(argv)

    default_start, default_end = STAGE_WINDOWS[args.stage]
    start = default_start if args.start is None else args.start
    end = min(default_end, args.length) if args.end is None else args.end
    params = {"at": args.at, "lk": args.lk, "rk": args.rk, "kk": args.kk}
    try:
        traces = load_traces(args.dir / args.traces, args.count, args.length)
        plaintexts = load_plaintexts(args.dir / args.plaintexts, args.count)
        results = run_stage(traces, plaintexts, args.stage, start, end, params)
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    for index, result in results.items():
        print(f"  {index:02d}th Block | KEY[{result.key:02X}] "
              f"CORR[{result.correlation:f}] POS[{result.position}]")
        if not args.no_save:
            out_dir = args.dir / "ct"
            out_dir.mkdir(parents=True, exist_ok=True)
            result.curve.astype(np.float64).tofile(out_dir / f"{index:02d}th_{args.stage}.ct")

    if args.stage == 1:
        master = bytearray(BLOCK_SIZE)
        for index, result in results.items():
            master[index] = result.key
        print()
        print(f"MASTER KEY : 0x{master.hex().upper()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())