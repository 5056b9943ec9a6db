# seedsca

Tools for studying the SEED block cipher under correlation power analysis
(CPA). The package holds:

- `seedsca.tables` – the S-boxes `S`, their inverses `INVS`, the extended
  tables `SS`, the key-schedule constants `KC`, and the functions
  `g_function`, `sbox` and `inverse_sbox`;
- `seedsca.cipher` – the key schedule (`key_schedule`), the F function
  (`round_function`), block encryption (`encrypt_block`), the state after
  one round (`first_round_output`) and small helpers (`pack_word`,
  `unpack_word`, `format_block`);
- `seedsca.sboxtools` – inverting a permutation table (`invert_sbox`),
  building a 256-entry table from index/value pairs (`parse_pairs`,
  `sbox_from_pairs`) and printing tables sixteen to a line (`format_table`);
- `seedsca.recover` – the inverse of G (`inverse_g`), undoing a round key
  into the master-key sums A + C and B − D (`undo_round_keys`,
  `recover_key_sums`), and the low-24-bit relations between key words and
  their rotated forms (`relation_words`);
- `seedsca.traces` – loaders for power traces (`load_traces`) and
  plaintext blocks (`load_plaintexts`);
- `seedsca.cpa` – a four-stage CPA attack on the first two rounds.

## Installing

```
pip install .
```

NumPy is the only runtime dependency. To run the tests:

```
pip install ".[test]"
pytest
```

## Using the library

Encrypting one block:

```python
from seedsca.cipher import key_schedule, encrypt_block, format_block

round_keys = key_schedule(bytes(16))
ciphertext = encrypt_block(bytes(range(16)), round_keys)
print(format_block(ciphertext))
```

`key_schedule` returns sixteen `(KL, KR)` pairs; `encrypt_block` takes a
16-byte block and those pairs and returns the 16-byte ciphertext.

The G function and its inverse:

```python
from seedsca.tables import g_function
from seedsca.recover import inverse_g

word = g_function(0x01234567)
assert inverse_g(word) == 0x01234567
```

Running a CPA stage on your own measurements:

```python
from seedsca.traces import load_traces, load_plaintexts
from seedsca.cpa import run_stage

traces = load_traces("trace.bin", 2000, 24000)
plaintexts = load_plaintexts("plaintext.npy", 2000)
results = run_stage(traces, plaintexts, 1, 0, 5000)
for index, result in results.items():
    print(index, hex(result.key), result.correlation, result.position)
```

`load_traces` reads `count × length` 32-bit floats in native byte order,
one trace after another. `load_plaintexts` reads `count` 16-byte blocks
from the start of the file as raw bytes. Both raise `ValueError` if the file
is too short.

`run_stage(traces, plaintexts, stage, start, end, params)` tries all 256
guesses for each of the four key bytes of a stage, using the Hamming weight
of an S-box output as the leakage model and the Pearson correlation over
the sample window `[start, end)`. It returns a dict of `ByteResult`
(`key`, `correlation`, `position`, `curve`) keyed by byte index, in the
order the bytes were attacked:

- stage 1: bytes 0–3 of the first-round G input, R0 ⊕ R1 ⊕ key;
- stage 2: bytes 3–0 of the first-round addition, needs `params["at"]`;
- stage 3: bytes 0–3 of the second-round G input, needs `params["lk"]` and
  `params["rk"]`;
- stage 4: bytes 3–0 of the second-round addition, needs `lk`, `rk` and
  `kk`.

Stages 2 and 4 carry the addition from byte to byte through a
`CarryChain`. The per-stage models are available on their own as
`stage1_intermediate` to `stage4_intermediate`, with `first_round_state`
for the state after round one. Lower-level pieces: `hamming_weight`,
`correlate` and `attack_byte`.

## Commands

- `seedsca-encrypt [--key HEX] [--plaintext HEX]` – print the sixteen
  round-key pairs, the plaintext and its ciphertext. Defaults to an
  all-zero key and a fixed sample block.
- `seedsca-sbox invert` – print the inverses of both SEED S-boxes.
- `seedsca-sbox build [FILE]` – read `index value` pairs (from `FILE` or
  standard input) and print the resulting table in decimal and in hex.
- `seedsca-recover [keys] [--kl1 W --kr1 W --kl2 W --kr2 W]` – undo the
  first two round keys and print A + C, B − D, A′ + C, B′ − D, then their
  left sum and that sum shifted right by eight bits.
- `seedsca-recover relation [--a W --b W --c W --d W --a-rot W --b-rot W]`
  – print the four relation words.
- `seedsca-cpa STAGE [--dir DIR] [--traces NAME] [--plaintexts NAME]
  [--count N] [--length N] [--start N] [--end N] [--at W] [--lk W] [--rk W]
  [--kk W] [--no-save]` – run one attack stage and print the best key byte,
  correlation and position for each byte. Unless `--no-save` is given, each
  byte's correlation curve is written as 64-bit floats to
  `DIR/ct/NNth_STAGE.ct`. Stage 1 also prints the recovered key bytes as a
  16-byte hex value, the bytes not attacked left at zero.

Run any command with `--help` for the full list of options.

## What it does not do

- It does not record power traces; it works only on files you supply.
- The plaintext file is read as raw bytes: a NumPy `.npy` header is not
  parsed and must not be present.
- The cipher module encrypts only; there is no decryption.
- The attack recovers round-key material for the first two rounds; turning
  that into the full master key is left to the relations in
  `seedsca.recover`, not done automatically.