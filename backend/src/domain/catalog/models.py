"""License catalog records (jenis lesen, keperluan dokumen)."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LicenseType:
    id: int
    code: Optional[str]
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    processing_fee: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LicenseType":
        fee = data.get("yuran_proses")
        return cls(
            id=int(data["id"]),
            code=data.get("kod"),
            name=data.get("nama", ""),
            description=data.get("keterangan"),
            category=data.get("kategori"),
            processing_fee=Decimal(str(fee)) if fee is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kod": self.code,
            "nama": self.name,
            "keterangan": self.description,
            "kategori": self.category,
            "yuran_proses": str(self.processing_fee) if self.processing_fee is not None else None,
        }


@dataclass(frozen=True)
class DocumentRequirement:
    id: int
    license_type_id: int
    name: str
    description: Optional[str] = None
    mandatory: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentRequirement":
        return cls(
            id=int(data["id"]),
            license_type_id=int(data["jenis_lesen_id"]),
            name=data.get("nama", ""),
            description=data.get("keterangan"),
            mandatory=bool(data.get("wajib", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "jenis_lesen_id": self.license_type_id,
            "nama": self.name,
            "keterangan": self.description,
            "wajib": self.mandatory,
        }
