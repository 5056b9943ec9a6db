import io

import pytest

from seedsca.sboxtools import (
    format_table,
    invert_sbox,
    main,
    parse_pairs,
    sbox_from_pairs,
)
from seedsca.tables import INVS, S


@pytest.mark.parametrize("which", [0, 1])
def test_invert_matches_inverse_tables(which):
    assert invert_sbox(S[which]) == INVS[which]


@pytest.mark.parametrize("which", [0, 1])
def test_invert_twice_is_identity(which):
    assert invert_sbox(invert_sbox(S[which])) == S[which]


def test_inverse_values_fixed_by_source_table():
    inverse = invert_sbox(S[0])
    assert inverse[0x00] == 0x5A
    assert inverse[0xFF] == 0xB0
    assert invert_sbox(S[1])[0x00] == 0xD6


def test_invert_rejects_repeated_value():
    with pytest.raises(ValueError):
        invert_sbox([0, 0, 1])


def test_invert_rejects_out_of_range_value():
    with pytest.raises(ValueError):
        invert_sbox([0, 3, 1])


def test_sbox_from_shuffled_pairs():
    pairs = list(enumerate(S[1]))
    pairs.reverse()
    assert sbox_from_pairs(pairs) == S[1]


def test_sbox_from_pairs_later_pair_wins():
    pairs = list(enumerate(S[0])) + [(0, 7)]
    table = sbox_from_pairs(pairs)
    assert table[0] == 7
    assert table[1:] == S[0][1:]


def test_sbox_from_pairs_missing_index():
    pairs = list(enumerate(S[0]))[:-1]
    with pytest.raises(ValueError):
        sbox_from_pairs(pairs)


def test_sbox_from_pairs_bad_index():
    pairs = list(enumerate(S[0])) + [(256, 1)]
    with pytest.raises(ValueError):
        sbox_from_pairs(pairs)


def test_parse_pairs():
    assert parse_pairs("0 5\n1 3") == [(0, 5), (1, 3)]


def test_parse_pairs_odd_count():
    with pytest.raises(ValueError):
        parse_pairs("0 5 1")


def test_parse_pairs_not_integer():
    with pytest.raises(ValueError):
        parse_pairs("0 x")


def test_format_table_rows():
    text = format_table(range(32), "{:03d} ")
    lines = text.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("000 001 ")
    assert lines[1].startswith("016 ")
    assert text.endswith("\n")


def test_format_table_partial_row_has_no_newline():
    assert format_table([10, 11], "0x{:02x}, ") == "0x0a, 0x0b, "


def test_main_invert(capsys):
    assert main(["invert"]) == 0
    out = capsys.readouterr().out
    assert "INVERSED SBOX #1" in out
    assert "INVERSED SBOX #2" in out
    assert "0x5A, 0x2F, " in out
    assert len(out.splitlines()) == 2 + 2 * 16


def test_main_build_from_file(tmp_path, capsys):
    source = tmp_path / "pairs.txt"
    source.write_text("\n".join(f"{i} {v}" for i, v in reversed(list(enumerate(S[0])))))
    assert main(["build", str(source)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 32
    assert lines[0].startswith("169 133 ")
    assert lines[16].startswith("0xa9, 0x85, ")


def test_main_build_from_stdin(monkeypatch, capsys):
    text = " ".join(f"{i} {v}" for i, v in enumerate(S[1]))
    monkeypatch.setattr("sys.stdin", io.StringIO(text))
    assert main(["build"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[16].startswith("0x38, 0xe8, ")


def test_main_build_incomplete_input(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("0 1 1 2"))
    with pytest.raises(SystemExit):
        main(["build"])