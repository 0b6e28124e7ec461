"""Exception types for riprap."""

from __future__ import annotations

from collections.abc import Sequence


class RiprapError(RuntimeError):
    """Base class for errors raised by riprap."""


class PayloadError(RiprapError):
    """A front-end payload could not be read or failed validation."""

    def __init__(self, message: str, *, path: str = "") -> None:
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class UnknownFrontEnd(RiprapError):
    """No registered front end handles the requested language."""

    def __init__(self, language_id: str, known: Sequence[str] = ()) -> None:
        super().__init__(
            f"no front end for {language_id!r} (known: {', '.join(known) or 'none'})"
        )
        self.language_id = language_id


class BodyScanError(RiprapError):
    """A function body handed over by the front end is malformed.

    The scanner raises this for a single function; callers catch it at the
    function boundary and record the function as unanalyzable.
    """

    def __init__(self, function: str, reason: str) -> None:
        super().__init__(f"{function}: {reason}")
        self.function = function
        self.reason = reason


class NeverThrown(RiprapError):
    """Raised by the never() marker when an unreachable path is reached."""

    def __init__(self, message: str, *, env: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.env = dict(env or {})
