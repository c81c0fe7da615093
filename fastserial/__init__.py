"""Dynamic JSON values with a strict decoder and compact encoder, plus byte scanners."""

__version__ = "0.1.0"
__all__ = ["scan", "value"]