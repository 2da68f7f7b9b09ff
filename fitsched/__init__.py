"""fitsched: trainer, room and client scheduling with proximity recommendations."""

__version__ = "0.1.0"
