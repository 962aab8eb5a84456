from . import health, words

__all__ = [
    "health",
    "words",
]
