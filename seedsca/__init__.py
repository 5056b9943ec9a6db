"""SEED block cipher, its tables, key-recovery algebra and correlation power analysis."""

__version__ = "0.1.0"
__all__ = ["tables", "cipher", "sboxtools", "recover", "traces", "cpa"]