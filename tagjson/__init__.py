"""Strict JSON parsing with positioned errors and streaming of concatenated values."""

__version__ = "0.1.0"

__all__ = ["deserializer", "errors", "numbers", "reader", "stream"]