"""Class decorators that add arithmetic, dict/set/binary conversion and printing helpers to dataclasses."""

__version__ = "0.0.4"
__all__ = ["helpers", "math", "parser", "printing"]