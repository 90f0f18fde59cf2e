import sys
from classhub.db.session import SessionLocal, create_tables
from classhub.models.users import User
from classhub.core.security import get_password_hash
from classhub.schemas.users import UserRole, UserStatus


def create_admin(email: str, password: str):
    db = SessionLocal()
    try:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            print(f"❌ User with email '{email}' already exists")
            return

        admin = User(
            email=email,
            password_hash=get_password_hash(password),
            role=UserRole.ADMIN,
            status=UserStatus.ACTIVE,
        )
        db.add(admin)
        db.commit()
        print(f"✅ Admin created successfully: {email}")
    except Exception as e:
        db.rollback()
        print(f"❌ Failed to create admin: {str(e)}")
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python scripts/create_admin.py <email> <password>")
        sys.exit(1)

    _, email, password = sys.argv
    create_tables()
    create_admin(email=email, password=password)
