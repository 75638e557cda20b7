from .converters import format_size, to_int

__all__ = ["format_size", "to_int"]
