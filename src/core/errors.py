"""
Conversion Error Types

Exceptions raised by the markup converter. Every one of them aborts the
current conversion; callers decide whether to skip the page or stop the run.
"""

from typing import Iterable


class ConversionError(Exception):
    """Base exception for all markup conversion failures."""
    pass


class StructuralMismatch(ConversionError):
    """Raised when the page lacks the containers the converter relies on."""

    def __init__(self, missing: Iterable[str]):
        self.missing = tuple(missing)
        super().__init__(
            f"Page shape changed: no {', '.join(repr(tag) for tag in self.missing)} element found"
        )


class MissingAttribute(ConversionError):
    """Raised when a node lacks an attribute its rule needs."""

    def __init__(self, tag: str, attribute: str):
        self.tag = tag
        self.attribute = attribute
        super().__init__(f"<{tag}> element has no '{attribute}' attribute")


class UnsupportedMarkup(ConversionError):
    """Raised when a tag outside the supported rule set is encountered."""

    def __init__(self, tag: str, snapshot: str):
        self.tag = tag
        self.snapshot = snapshot
        preview = snapshot if len(snapshot) <= 200 else snapshot[:200] + '...'
        super().__init__(f"Unsupported markup <{tag}>: {preview}")
