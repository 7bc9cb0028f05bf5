"""Structured configuration errors raised while building decay systems."""

from __future__ import annotations

from typing import Any


class DecayDataError(ValueError):
    """
    Invalid or inconsistent decay data found at construction time.

    Carries a short error code plus the offending field name and value, e.g.
    DecayDataError("UnknownLevel", field="to", value="60.28.9").
    """

    def __init__(self, code: str, field: str | None = None, value: Any = None, detail: str = "") -> None:
        self.code = code
        self.field = field
        self.value = value
        self.detail = detail
        msg = code
        if field is not None:
            msg += f": {field}={value!r}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)
