from .antivirus_port import AntivirusScannerPort, ScanResult
from .document_store_port import DocumentStore, StorageError, StoredFile

__all__ = [
    "AntivirusScannerPort",
    "DocumentStore",
    "ScanResult",
    "StorageError",
    "StoredFile",
]
