"""Diagnostics accumulator threaded through the analysis pipeline."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DiagnosticEntry:
    """A single warning or informational message emitted during an analysis."""

    level: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class Diagnostics:
    """Collect structured warnings and messages for one analysis.

    Entries are also forwarded to the logger of the emitting module, so
    the accumulator never replaces normal logging; it only makes the
    messages available to callers and tests as data.
    """

    def __init__(self) -> None:
        self.entries: List[DiagnosticEntry] = []

    def warn(self, message: str, source: Optional[logging.Logger] = None, **context: Any) -> None:
        self._record("warning", message, source, context)

    def inform(self, message: str, source: Optional[logging.Logger] = None, **context: Any) -> None:
        self._record("info", message, source, context)

    def _record(
        self,
        level: str,
        message: str,
        source: Optional[logging.Logger],
        context: Dict[str, Any],
    ) -> None:
        self.entries.append(DiagnosticEntry(level=level, message=message, context=dict(context)))
        target = source or logger
        log_level = logging.WARNING if level == "warning" else logging.INFO
        target.log(log_level, message, extra={"context": context})

    @property
    def warnings(self) -> List[DiagnosticEntry]:
        return [e for e in self.entries if e.level == "warning"]

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [e.message for e in self.entries if level is None or e.level == level]

    def __iter__(self) -> Iterator[DiagnosticEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
