import numpy as np
import pytest

from seedsca.cipher import first_round_output, pack_word
from seedsca.cpa import (
    CarryChain,
    attack_byte,
    correlate,
    first_round_state,
    hamming_weight,
    main,
    run_stage,
    stage1_intermediate,
    stage2_intermediate,
    stage3_intermediate,
    stage4_intermediate,
)
from seedsca.tables import g_function, inverse_sbox

LK = 0x7C8F8C7E
RK = 0xC737A22C
KK = 0x58ED0491
AT = 0xBBB82E52


def _plaintexts(count, seed=1):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(count, 16), dtype=np.uint8)


def _noise(count, length, seed=2):
    rng = np.random.default_rng(seed)
    return rng.normal(0.0, 1.0, size=(count, length)).astype(np.float32)


def test_hamming_weight_complement_invariant():
    values = np.arange(256, dtype=np.uint8)
    weights = [int(w) for w in hamming_weight(values)]
    complements = [int(w) for w in hamming_weight(values ^ 0xFF)]
    assert [w + c for w, c in zip(weights, complements)] == [8] * 256
    assert [int(w) for w in hamming_weight([0x00, 0xFF, 0x0F, 0xA5])] == [0, 8, 4, 4]


def test_hamming_weight_single_bits():
    bits = [1 << n for n in range(8)]
    assert list(hamming_weight(bits)) == [1] * 8


def test_hamming_weight_rejects_non_bytes():
    with pytest.raises(ValueError):
        hamming_weight([256])


def test_correlate_linear_columns():
    rng = np.random.default_rng(3)
    h = rng.integers(0, 9, size=50).astype(float)
    traces = rng.normal(size=(50, 6))
    traces[:, 2] = 3 * h + 1
    traces[:, 0] = -h
    corr = correlate(traces, h, 0, 4)
    assert corr[2] == pytest.approx(1.0)
    assert corr[0] == pytest.approx(-1.0)
    assert np.all(corr[4:] == 0)
    assert np.all(np.abs(corr[:4]) <= 1.0 + 1e-9)


def test_correlate_rejects_bad_input():
    traces = np.zeros((4, 5))
    with pytest.raises(ValueError):
        correlate(traces, [1, 2, 3], 0, 5)
    with pytest.raises(ValueError):
        correlate(traces, [1, 2, 3, 4], 2, 6)


def test_attack_byte_recovers_stage1_key():
    pt = _plaintexts(300)
    traces = _noise(300, 10)
    traces[:, 5] = hamming_weight(stage1_intermediate(pt, 0, 0x3C))
    seen = []
    result = attack_byte(traces, lambda k: stage1_intermediate(pt, 0, k), 0, 10,
                         lambda key, best: seen.append(key))
    assert result.key == 0x3C
    assert result.position == 5
    assert result.correlation == pytest.approx(1.0)
    assert seen == list(range(256))
    assert result.curve[5] == pytest.approx(1.0)


def test_stage1_matches_inverse_sbox():
    pt = _plaintexts(20)
    out = stage1_intermediate(pt, 0, 0x77)
    assert [inverse_sbox(1, int(v)) for v in out] == [int(r[8] ^ r[12] ^ 0x77) for r in pt]


def test_stage1_key_is_xored_into_plaintext():
    pt = _plaintexts(30)
    shifted = pt.copy()
    shifted[:, 9] ^= 0xA5
    assert np.array_equal(stage1_intermediate(pt, 1, 0xA5), stage1_intermediate(shifted, 1, 0))


def test_stage1_rejects_bad_arguments():
    pt = _plaintexts(2)
    with pytest.raises(ValueError):
        stage1_intermediate(pt, 4, 0)
    with pytest.raises(ValueError):
        stage1_intermediate(pt, 0, 256)
    with pytest.raises(ValueError):
        stage1_intermediate(np.zeros((2, 8), dtype=np.uint8), 0, 0)


def test_carry_chain_plain_sum():
    assert CarryChain().add(3, 0x10, 0x20) == 0x30


def test_carry_chain_propagates_carry():
    chained = CarryChain()
    chained.add(3, 0xD0, 0x20)
    assert chained.carry > 0xFF
    fresh = CarryChain()
    assert chained.add(2, 0x41, 0x17) == (fresh.add(2, 0x41, 0x17) + 1) % 256


def test_carry_chain_byte_three_ignores_carry():
    chained = CarryChain()
    chained.add(3, 0xD0, 0x20)
    assert chained.add(3, 0x12, 0x34) == CarryChain().add(3, 0x12, 0x34)


def test_carry_chain_rejects_bad_index():
    with pytest.raises(ValueError):
        CarryChain().add(5, 1, 2)


def test_stage2_byte3_offset_is_g_output():
    pt = _plaintexts(16)
    offsets = []
    for key in (0x00, 0x5A):
        out = stage2_intermediate(pt, 3, key, AT, CarryChain())
        offsets.append([(inverse_sbox(0, int(o)) - int(r[11] ^ key)) % 256
                        for o, r in zip(out, pt)])
    assert offsets[0] == offsets[1]
    row = bytes(pt[0])
    word = pack_word(row[8:12]) ^ pack_word(row[12:16]) ^ AT
    assert offsets[0][0] == g_function(word) & 0xFF


def test_first_round_state_matches_cipher():
    pt = _plaintexts(8)
    state = first_round_state(pt, LK, RK)
    assert [bytes(r) for r in state] == [first_round_output(bytes(r), LK, RK) for r in pt]


def test_stage3_matches_state():
    pt = _plaintexts(12)
    state = first_round_state(pt, LK, RK)
    out = stage3_intermediate(pt, 2, 0x81, LK, RK)
    assert [inverse_sbox(1, int(v)) for v in out] == [int(r[10] ^ r[14] ^ 0x81) for r in state]


def test_stage4_byte3_offset_is_g_output():
    pt = _plaintexts(10)
    out = stage4_intermediate(pt, 3, 0x2B, LK, RK, KK, CarryChain())
    state = first_round_output(bytes(pt[0]), LK, RK)
    word = pack_word(state[8:12]) ^ pack_word(state[12:16]) ^ KK
    assert (inverse_sbox(0, int(out[0])) - (state[11] ^ 0x2B)) % 256 == g_function(word) & 0xFF


def test_run_stage1_recovers_all_bytes():
    pt = _plaintexts(300)
    traces = _noise(300, 8)
    keys = {0: 0x11, 1: 0xC4, 2: 0x5E, 3: 0x90}
    for index, key in keys.items():
        traces[:, 2 * index] = hamming_weight(stage1_intermediate(pt, index, key))
    results = run_stage(traces, pt, 1, 0, 8, {})
    assert list(results) == [0, 1, 2, 3]
    assert {i: r.key for i, r in results.items()} == keys
    assert [r.position for r in results.values()] == [0, 2, 4, 6]


def test_run_stage3_recovers_all_bytes():
    pt = _plaintexts(300, seed=7)
    traces = _noise(300, 4, seed=8)
    keys = {0: 0x01, 1: 0xFE, 2: 0x33, 3: 0x7A}
    for index, key in keys.items():
        traces[:, index] = hamming_weight(stage3_intermediate(pt, index, key, LK, RK))
    results = run_stage(traces, pt, 3, 0, 4, {"lk": LK, "rk": RK})
    assert {i: r.key for i, r in results.items()} == keys


def test_run_stage2_attacks_bytes_backwards():
    pt = _plaintexts(40)
    traces = _noise(40, 3)
    results = run_stage(traces, pt, 2, 0, 3, {"at": AT})
    assert list(results) == [3, 2, 1, 0]
    assert all(0 <= r.key <= 255 for r in results.values())


def test_run_stage_errors():
    pt = _plaintexts(5)
    traces = _noise(5, 3)
    with pytest.raises(ValueError):
        run_stage(traces, pt, 5, 0, 3, {})
    with pytest.raises(ValueError):
        run_stage(traces, pt, 4, 0, 3, {"lk": LK})
    with pytest.raises(ValueError):
        run_stage(_noise(6, 3), pt, 1, 0, 3, {})


def test_main_stage1_reports_master_key(tmp_path, capsys):
    pt = _plaintexts(300)
    traces = _noise(300, 8)
    keys = [0x2A, 0x99, 0x04, 0xE1]
    for index, key in enumerate(keys):
        traces[:, 2 * index + 1] = hamming_weight(stage1_intermediate(pt, index, key))
    traces.tofile(tmp_path / "trace.bin")
    (tmp_path / "plaintext.npy").write_bytes(pt.tobytes())

    assert main(["1", "--dir", str(tmp_path), "--count", "300", "--length", "8"]) == 0
    out = capsys.readouterr().out
    expected = (bytes(keys) + bytes(12)).hex().upper()
    assert f"MASTER KEY : 0x{expected}" in out
    curve = np.fromfile(tmp_path / "ct" / "00th_1.ct", dtype=np.float64)
    assert curve.shape == (8,)
    assert curve[1] == pytest.approx(1.0)


def test_main_missing_files_exits(tmp_path):
    with pytest.raises(SystemExit):
        main(["1", "--dir", str(tmp_path), "--count", "2", "--length", "4"])