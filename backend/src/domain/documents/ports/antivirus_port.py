"""Antivirus Port - scans a stored document for malware."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ScanResult:
    clean: bool
    threat: Optional[str] = None
    engine: str = "unknown"


class AntivirusScannerPort(ABC):

    @abstractmethod
    def scan(self, content: bytes, filename: str) -> ScanResult:
        """Scan file content.

        Raises:
            Exception: scanner unreachable; the caller retries the unit of work
        """
