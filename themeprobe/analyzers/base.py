"""Base classes for signal extractors."""

from abc import ABC, abstractmethod
from typing import Generic, List, TypeVar

from ..models import Signal

EvidenceT = TypeVar("EvidenceT")


class SignalExtractor(ABC, Generic[EvidenceT]):
    """Contract for extractors that turn raw evidence into weighted signals."""

    #: Short label recorded in log output.
    source: str = "unknown"

    @abstractmethod
    def extract(self, evidence: EvidenceT) -> List[Signal]:
        """Return every signal the evidence supports, in rule order."""
