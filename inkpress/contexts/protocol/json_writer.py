"""
Minimal streaming JSON builder for job descriptors.

Not a general-purpose serializer: only backslash and double quote are escaped,
every other character (control characters included) passes through verbatim.
This matches what the engine's job parser expects.

Example:
    >>> str(JsonWriter().begin_obj().field("a", 1).field("b", True).end_obj())
    '{"a":1,"b":true}'
"""

from typing import List, Union

Scalar = Union[str, int, bool]

_UNSET = object()


def quote_and_escape(text: str) -> str:
    """Quote a string, escaping only backslash and double quote."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _render_scalar(value: Scalar) -> str:
    # bool before int: True is an int in Python
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return quote_and_escape(value)
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")


class JsonWriter:
    """
    Fluent JSON builder with LIFO open/close tracking.

    The comma flag records whether the next sibling needs a separator, so
    callers never emit a leading comma.
    """

    def __init__(self):
        self._parts: List[str] = []
        self._stack: List[str] = []
        self._comma = False

    def begin_obj(self, name: str = None) -> "JsonWriter":
        self._maybe_append_comma()
        if name is not None:
            self._parts.append(quote_and_escape(name))
            self._parts.append(":")
        self._parts.append("{")
        self._stack.append("}")
        self._comma = False
        return self

    def end_obj(self) -> "JsonWriter":
        return self._close("}")

    def begin_list(self, name: str = None) -> "JsonWriter":
        self._maybe_append_comma()
        if name is not None:
            self._parts.append(quote_and_escape(name))
            self._parts.append(":")
        self._parts.append("[")
        self._stack.append("]")
        self._comma = False
        return self

    def end_list(self) -> "JsonWriter":
        return self._close("]")

    def field(self, name: str, value=_UNSET) -> "JsonWriter":
        """
        Write a field name, and its value when one is given.

        Without a value the next value()/begin_obj()/begin_list() call
        supplies it.
        """
        self._maybe_append_comma()
        self._parts.append(quote_and_escape(name))
        self._parts.append(":")
        self._comma = False
        if value is not _UNSET:
            self.value(value)
        return self

    def value(self, value: Scalar) -> "JsonWriter":
        return self.raw(_render_scalar(value))

    def values(self, values) -> "JsonWriter":
        """Write each item of an iterable as a value."""
        for value in values:
            self.value(value)
        return self

    def raw(self, text: str) -> "JsonWriter":
        """Append a pre-serialized JSON value unchanged."""
        self._maybe_append_comma()
        self._parts.append(text)
        self._comma = True
        return self

    def getvalue(self) -> str:
        return "".join(self._parts)

    @property
    def depth(self) -> int:
        """Number of objects/lists still open."""
        return len(self._stack)

    def __str__(self) -> str:
        return self.getvalue()

    def _close(self, closer: str) -> "JsonWriter":
        if not self._stack or self._stack[-1] != closer:
            expected = self._stack[-1] if self._stack else "nothing"
            raise ValueError(f"Unbalanced JSON close {closer!r} (expected {expected!r})")
        self._stack.pop()
        self._parts.append(closer)
        self._comma = True
        return self

    def _maybe_append_comma(self) -> None:
        if self._comma:
            self._parts.append(",")
