"""miniblog: a small file-backed blog engine core."""

__version__ = "0.1.0"
