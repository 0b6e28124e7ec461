"""riprap package root."""

from riprap.exceptions import NeverThrown, RiprapError
from riprap.invariants import never

__all__ = ["__version__", "NeverThrown", "RiprapError", "never"]

__version__ = "0.1.0"
