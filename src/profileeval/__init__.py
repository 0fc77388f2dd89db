"""Profile evaluation and candidate filtering pipeline."""

__version__ = "0.1.0"
