"""Collision-resistant identifiers."""

from cuid2 import cuid_wrapper

cuid = cuid_wrapper()


def generate_id(prefix: str | None = None) -> str:
    """Return a new cuid, optionally as an upper-cased ``PREFIX-ID`` reference."""
    if prefix:
        return f"{prefix}-{cuid().upper()}"
    return cuid()
