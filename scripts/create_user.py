#!/usr/bin/env python3
"""Script to create chat users (candidates and admins) in the database."""

import sys
from pathlib import Path

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.database import SessionLocal
from app.models.user import User, UserRole


def create_user(
    email: str,
    first_name: str,
    last_name: str,
    role: str = UserRole.CANDIDATE.value,
    is_active: bool = True,
) -> User:
    """Create a new user in the database."""
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"❌ User with email '{email}' already exists (id={existing.id})!")
            sys.exit(1)

        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active,
        )

        db.add(user)
        db.commit()
        db.refresh(user)

        print(f"✅ User created successfully!")
        print(f"   Id: {user.id}")
        print(f"   Name: {user.display_name}")
        print(f"   Email: {user.email}")
        print(f"   Role: {user.role}")

        return user
    except Exception as e:
        db.rollback()
        print(f"❌ Error creating user: {e}")
        sys.exit(1)
    finally:
        db.close()


def main():
    """Main entry point for the script."""
    roles = [r.value for r in UserRole]
    if len(sys.argv) < 4:
        print("Usage: python create_user.py <email> <first_name> <last_name> [role]")
        print("\nExample:")
        print("  python create_user.py jane@example.com Jane Doe CANDIDATE")
        print("  python create_user.py admin@example.com Alex Admin ADMIN")
        print(f"\nRoles: {', '.join(roles)}")
        sys.exit(1)

    email = sys.argv[1]
    first_name = sys.argv[2]
    last_name = sys.argv[3]
    role = sys.argv[4].upper() if len(sys.argv) > 4 else UserRole.CANDIDATE.value

    if role not in roles:
        print(f"❌ Invalid role '{role}'. Must be: {', '.join(roles)}")
        sys.exit(1)

    create_user(
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
    )


if __name__ == "__main__":
    main()
