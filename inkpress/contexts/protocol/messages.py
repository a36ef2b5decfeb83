"""Diagnostic messages and conversion results reported through the structured log."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

SUCCESS_STATUS = "success"


class MessageType(Enum):
    """Severity token of a ``msg`` line."""

    ERR = "err"
    WRN = "wrn"
    INF = "inf"
    DBG = "dbg"
    OUT = "out"

    @classmethod
    def parse(cls, token: str) -> "MessageType":
        """Match a severity token case-insensitively. Raises ValueError if unknown."""
        return cls(token.strip().lower())

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    MessageType.ERR: "error",
    MessageType.WRN: "warning",
    MessageType.INF: "info",
    MessageType.DBG: "debug",
    MessageType.OUT: "console-output",
}


@dataclass(frozen=True)
class LogMessage:
    """One ``msg|type|location|text`` line."""

    type: MessageType
    location: str
    text: str

    def __str__(self) -> str:
        if self.location:
            return f"{self.type.label}: {self.location}: {self.text}"
        return f"{self.type.label}: {self.text}"


@dataclass(frozen=True)
class DataMessage:
    """One ``dat|name|value`` line."""

    name: str
    value: str


@dataclass
class ConversionResult:
    """
    Outcome of one conversion job.

    Attributes:
        status: Body of the last ``fin`` line, or None if the log ended without one
        messages: LogMessages in stream order
        data_messages: DataMessages in stream order
    """

    status: Optional[str] = None
    messages: List[LogMessage] = field(default_factory=list)
    data_messages: List[DataMessage] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == SUCCESS_STATUS

    @property
    def complete(self) -> bool:
        """False when the stream ended without a terminal marker (e.g., engine died)."""
        return self.status is not None

    @property
    def errors(self) -> List[LogMessage]:
        return [m for m in self.messages if m.type is MessageType.ERR]

    @property
    def warnings(self) -> List[LogMessage]:
        return [m for m in self.messages if m.type is MessageType.WRN]
