"""
Non-fatal diagnostic channel for builds

Content problems never abort a build. Each one is recorded here and
mirrored to LOG, then the offending construct is dropped, passed through
or clamped by whoever found it.

Kinds:
    malformed   - marker syntax present but its parameters are unusable
    unresolved  - known grammar, unknown target (component, layout, anchor)
    structural  - endcard/enddefine without opener, unterminated define
    state       - navigation requested for a slide with no recorded state
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional

from .log import LOG


KINDS = ("malformed", "unresolved", "structural", "state")


class MatchaInvariantError(RuntimeError):
    """Internal invariant violated (programming error, never content error)"""


@dataclass(frozen=True)
class Diagnostic:
    """
    One recorded anomaly

    Attributes:
        kind: One of KINDS
        message: Human-readable description
        slide_index: Slide the anomaly was found on, None for the definitions region
    """
    kind: str
    message: str
    slide_index: Optional[int] = None

    def __str__(self) -> str:
        where = "global" if self.slide_index is None else f"slide {self.slide_index}"
        return f"[{self.kind}] {where}: {self.message}"


class Diagnostics:
    """
    Collector for Diagnostic records

    One instance per build. Records keep insertion order.
    """

    def __init__(self) -> None:
        self.records: List[Diagnostic] = []

    def report(self, kind: str, message: str, slide_index: Optional[int] = None) -> Diagnostic:
        """
        Record an anomaly and mirror it to the log.

        Args:
            kind: One of KINDS
            message: Human-readable description
            slide_index: Slide the anomaly belongs to, if any

        Returns:
            The recorded Diagnostic

        Raises:
            MatchaInvariantError: If kind is not a known diagnostic kind
        """
        if kind not in KINDS:
            raise MatchaInvariantError(f"Unknown diagnostic kind: {kind}")
        diagnostic = Diagnostic(kind=kind, message=message, slide_index=slide_index)
        self.records.append(diagnostic)
        LOG(f"Warning: {diagnostic}", level=2)
        return diagnostic

    def of_kind(self, kind: str) -> List[Diagnostic]:
        return [record for record in self.records if record.kind == kind]

    def clear(self) -> None:
        self.records.clear()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)
