"""Permohonan (license application) models

Permohonan is the applicant's license application. It starts as a draft,
collects one uploaded document per catalog requirement, and is either
submitted for review or cancelled. Both outcomes are final.

Status flow: Draf → Diserahkan | Dibatalkan
"""

from uuid import uuid4

from sqlalchemy import (
    BigInteger, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer,
    Text, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, TimestampMixin


class Permohonan(TimestampMixin, Base):
    """License application header.

    butiran_operasi holds the nested business-operation details
    (alamat_premis, nama_perniagaan, jenis_operasi, bilangan_pekerja, catatan)
    as a JSON document. jenis_lesen_id references the external catalog and
    therefore has no foreign key.
    """
    __tablename__ = "permohonan"
    __table_args__ = (
        CheckConstraint(
            "status IN ('Draf', 'Diserahkan', 'Dibatalkan')",
            name="ck_permohonan_status",
        ),
        CheckConstraint(
            "(status = 'Diserahkan') = (tarikh_serahan IS NOT NULL)",
            name="ck_permohonan_tarikh_serahan",
        ),
        Index("ix_permohonan_user_id", "user_id"),
        Index("ix_permohonan_company_id", "company_id"),
        Index("ix_permohonan_jenis_lesen_id", "jenis_lesen_id"),
        Index("ix_permohonan_status", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    company_id = Column(Uuid, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    jenis_lesen_id = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, default="Draf")
    tarikh_serahan = Column(DateTime(timezone=True), nullable=True)
    butiran_operasi = Column(PortableJSONB, nullable=True)

    # Relationships
    user = relationship("User")
    company = relationship("Company")
    dokumen = relationship(
        "PermohonanDokumen",
        back_populates="permohonan",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PermohonanDokumen(TimestampMixin, Base):
    """Document uploaded against one catalog requirement (keperluan dokumen).

    At most one row exists per (permohonan_id, keperluan_dokumen_id); a new
    upload for the same requirement replaces the row. Rows are removed with
    their parent application.
    """
    __tablename__ = "permohonan_dokumen"
    __table_args__ = (
        UniqueConstraint(
            "permohonan_id", "keperluan_dokumen_id",
            name="uq_permohonan_dokumen_keperluan",
        ),
        CheckConstraint(
            "status_sah IN ('BelumSah', 'Disahkan')",
            name="ck_permohonan_dokumen_status_sah",
        ),
        Index("ix_permohonan_dokumen_permohonan_id", "permohonan_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    permohonan_id = Column(
        Uuid,
        ForeignKey("permohonan.id", ondelete="CASCADE"),
        nullable=False,
    )
    keperluan_dokumen_id = Column(Integer, nullable=False)
    nama_fail = Column(Text, nullable=False)
    mime = Column(Text, nullable=False)
    saiz_bait = Column(BigInteger, nullable=False)
    url_storan = Column(Text, nullable=False)
    hash_fail = Column(Text, nullable=True)  # SHA-256 hex, when integrity hashing is enabled
    status_sah = Column(Text, nullable=False, default="BelumSah")
    uploaded_by = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)

    # Relationships
    permohonan = relationship("Permohonan", back_populates="dokumen")
