"""codevault: a local credential vault of per-user codebooks."""

__version__ = "0.1.0"
