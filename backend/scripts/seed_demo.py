#!/usr/bin/env python
"""Seed script to create a demo applicant with a company.

Creates an identity-verified applicant and one company owned by them, then
prints a bearer token for calling the API locally.

Usage:
    python backend/scripts/seed_demo.py

Environment Variables:
    DATABASE_URL: PostgreSQL connection string
    JWT_SECRET: Token signing secret (required)
    DEMO_EMAIL: Email for the applicant (default: pemohon@example.com)
    DEMO_NAME: Display name (default: Pemohon Demo)
    DEMO_SSM_NUMBER: Company SSM registration number (default: 202401000001)
"""

import os
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from sqlalchemy import select

from auth.jwt import create_access_token
from database import SessionLocal, transaction
from models.company import Company
from models.user import User


def main():
    """Create the demo applicant and company if they do not exist yet."""
    email = os.getenv("DEMO_EMAIL", "pemohon@example.com").lower()
    name = os.getenv("DEMO_NAME", "Pemohon Demo")
    ssm_number = os.getenv("DEMO_SSM_NUMBER", "202401000001")

    session = SessionLocal()
    try:
        with transaction(session):
            user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if user is None:
                user = User(name=name, email=email, identity_verified=True)
                session.add(user)
                session.flush()
                print(f"Created applicant {email} ({user.id})")
            else:
                print(f"Applicant {email} already exists ({user.id})")

            company = session.execute(
                select(Company).where(Company.ssm_number == ssm_number)
            ).scalar_one_or_none()
            if company is None:
                company = Company(
                    owner_user_id=user.id,
                    ssm_number=ssm_number,
                    name=f"{name} Enterprise",
                )
                session.add(company)
                session.flush()
                print(f"Created company {ssm_number} ({company.id})")
            elif company.owner_user_id != user.id:
                print(f"ERROR: Company {ssm_number} belongs to another user")
                sys.exit(1)

            user_id, company_id = user.id, company.id
    finally:
        session.close()

    print()
    print(f"company_id: {company_id}")
    print(f"Bearer token: {create_access_token(user_id, email=email)}")


if __name__ == "__main__":
    main()
