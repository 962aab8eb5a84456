"""Lexi vocabulary review backend: SM-2 scheduling over a key-value word store."""
