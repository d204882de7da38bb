"""sknotes - structured block notes with SKML archives."""

__version__ = "0.3.0"
