[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "seedsca"
version = "0.1.0"
description = "SEED block cipher reference and correlation power analysis tools for recovering its round keys"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "seed",
    "block-cipher",
    "side-channel",
    "power-analysis",
    "cpa",
    "cryptanalysis",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "numpy",
]

[project.scripts]
seedsca-encrypt = "seedsca.cipher:main"
seedsca-sbox = "seedsca.sboxtools:main"
seedsca-recover = "seedsca.recover:main"
seedsca-cpa = "seedsca.cpa:main"

[tool.hatch.build.targets.wheel]
packages = ["seedsca"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
