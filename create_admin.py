import os
from app import create_app
from extensions import db
from models.admin import Admin

app = create_app()

with app.app_context():
    email = os.getenv("ADMIN_EMAIL", "admin@example.com").strip().lower()
    username = os.getenv("ADMIN_USERNAME", "admin").strip()
    password = os.getenv("ADMIN_PASSWORD", "admin123456")

    existing_admin = Admin.query.filter((Admin.email == email) | (Admin.username == username)).first()
    if existing_admin:
        print(f"Admin account already exists: {existing_admin.email}")
    else:
        admin = Admin(
            username=username,
            email=email,
            role="superadmin",
            is_active_flag=True
        )
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        print(f"Superadmin created: {email} (username: {username})")
        print("Please change the password after first login!")
