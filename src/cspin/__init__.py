"""cspin: pin stable names on Claude Code sessions."""

__version__ = "0.3.0"

__all__ = ["__version__"]
