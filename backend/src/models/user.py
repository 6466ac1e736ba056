"""User SQLAlchemy model"""

import re
from uuid import uuid4

from sqlalchemy import Boolean, Column, Text, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from .base import Base, TimestampMixin


class User(TimestampMixin, Base):
    """Applicant account.

    Registration, password handling and identity verification are owned by
    the account module; this table only carries what the licensing workflow
    reads: who the applicant is and whether their identity has been verified.
    """
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    identity_verified = Column(Boolean, nullable=False, default=False)

    # Relationships
    companies = relationship("Company", back_populates="owner")

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "identity_verified": self.identity_verified,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
