"""Script to create the initial admin user (and optional demo data)."""
import argparse
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fabnstitch.database import SessionLocal, engine, Base
from fabnstitch import models  # noqa: F401
from fabnstitch.models.fabric import Fabric
from fabnstitch.models.measurement import Measurement
from fabnstitch.models.user import User, UserRole
from fabnstitch.auth import get_password_hash

DEMO_FABRICS = [
    ("Premium Italian Wool", "Wool", "Navy Blue", 8500, 50, "Finest Italian wool, perfect for formal blazers"),
    ("English Tweed", "Tweed", "Brown", 7500, 35, "Classic English tweed for a sophisticated look"),
    ("Linen Blend", "Linen", "Beige", 5500, 60, "Light and breathable for summer wear"),
    ("Cashmere Blend", "Cashmere", "Charcoal", 12000, 20, "Luxurious cashmere blend for premium comfort"),
]


def _get_or_create_user(db, email, password, **fields):
    user = db.query(User).filter(User.email == email).first()
    if user:
        print(f"User already exists: {email}")
        return user, False
    user = User(email=email, hashed_password=get_password_hash(password), is_active=True, **fields)
    db.add(user)
    db.flush()
    print(f"Created {user.role.value}: {email} / {password}")
    return user, True


def create_demo_data(db):
    """Demo customer with measurements, a tailor and the fabric catalogue."""
    customer, created = _get_or_create_user(
        db, "rahul@example.com", "customer123",
        name="Rahul Sharma", phone="9876543210", role=UserRole.CUSTOMER,
        address="123 Main Street", city="Mumbai",
    )
    if created:
        db.add(Measurement(
            user_id=customer.id, chest=42, waist=36, shoulders=18,
            arm_length=25, jacket_length=30, neck=16,
        ))

    _get_or_create_user(
        db, "tailor@fabnstitch.com", "tailor123",
        name="Keshav Roy", phone="9988776655", role=UserRole.TAILOR, city="Mumbai",
    )

    if db.query(Fabric).count() == 0:
        for name, material, color, price, stock, description in DEMO_FABRICS:
            db.add(Fabric(
                name=name, material=material, color=color,
                price=price, stock=stock, description=description,
            ))
        print(f"Added {len(DEMO_FABRICS)} fabrics")


def create_admin(demo: bool = False):
    """Create initial admin user if not exists."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.role == UserRole.ADMIN).first()
        if admin:
            print(f"Admin user already exists: {admin.email}")
        else:
            _get_or_create_user(
                db, "admin@fabnstitch.com", "admin123",
                name="Admin User", phone="9920077539", role=UserRole.ADMIN, city="Mumbai",
            )
            print("\nPlease change the password after first login!")

        if demo:
            create_demo_data(db)
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--demo", action="store_true", help="also create demo users and fabrics")
    create_admin(demo=parser.parse_args().demo)
