"""Company SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, Text, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin


class Company(TimestampMixin, Base):
    """Company registered with SSM and linked to the applicant who owns it.

    SSM verification and linking happen in the account module. Applications
    may only reference a company whose owner_user_id is the applicant.
    """
    __tablename__ = "companies"
    __table_args__ = (
        UniqueConstraint("ssm_number", name="uq_companies_ssm_number"),
        Index("ix_companies_owner_user_id", "owner_user_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_user_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=True)
    ssm_number = Column(Text, nullable=False)
    name = Column(Text, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="companies")
