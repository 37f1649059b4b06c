import random
from datetime import timedelta
from faker import Faker
from extensions import db
from app import create_app
from models import ProjectRegistration, BATCH_TYPES, STATUSES
from models.registration import utcnow

# ====== CONFIG ======
NUM_REGISTRATIONS = 60
GROUP_RATIO = 0.4
DAYS_BACK = 90
# =====================

fake = Faker("en_IN")

COLLEGES = [
    "Government Engineering College",
    "National Institute of Technology",
    "College of Engineering Trivandrum",
    "Model Engineering College",
    "St. Joseph's College",
]
BRANCHES = ["CSE", "ECE", "EEE", "Mechanical", "Civil", "IT"]
TITLES = [
    "Smart Irrigation System",
    "IoT Based Home Automation",
    "Attendance System Using Face Recognition",
    "E-Commerce Recommendation Engine",
    "Blockchain Land Registry",
    "Traffic Density Analysis with CNN",
    "Hospital Management Portal",
]


def fake_phone():
    return str(random.randint(6000000000, 9999999999))


def fake_members():
    return [{"name": fake.name(), "phoneNumber": fake_phone()} for _ in range(random.randint(1, 5))]


def create_registrations():
    print("Creating fake project registrations...")

    now = utcnow()
    registrations = []
    for _ in range(NUM_REGISTRATIONS):
        is_group = random.random() < GROUP_RATIO
        created_at = now - timedelta(days=random.randint(0, DAYS_BACK), minutes=random.randint(0, 1440))
        registrations.append(ProjectRegistration(
            full_name=fake.name(),
            phone_number=fake_phone(),
            email=fake.unique.email().lower(),
            college_name=random.choice(COLLEGES),
            branch=random.choice(BRANCHES),
            semester=str(random.randint(1, 8)),
            batch_type=random.choice(BATCH_TYPES),
            registration_type="Group Project" if is_group else "Individual Project",
            project_title=random.choice(TITLES),
            group_members=fake_members() if is_group else [],
            status=random.choice(STATUSES),
            created_at=created_at,
            updated_at=created_at,
        ))

    db.session.add_all(registrations)
    db.session.flush()
    for registration in registrations:
        registration.project_id = ProjectRegistration.format_project_id(registration.id)
    db.session.commit()
    print(f"Created {len(registrations)} registrations.")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        create_registrations()
