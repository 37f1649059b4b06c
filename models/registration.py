from datetime import datetime, timezone
from extensions import db

BATCH_TYPES = ("M.Tech", "B.Tech", "M.Sc.", "B.Sc.", "Polytechnic", "MCA", "Diploma")
REGISTRATION_TYPES = ("Individual Project", "Group Project")
STATUSES = ("pending", "approved", "rejected")


def utcnow():
    # naive UTC, comparable with what SQLite/PostgreSQL hand back
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ProjectRegistration(db.Model):
    __tablename__ = "project_registrations"

    id = db.Column(db.Integer, primary_key=True)
    # PROJ-000042, assigned in the same transaction as the insert
    project_id = db.Column(db.String(50), unique=True, index=True)

    # Applicant
    full_name = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    college_name = db.Column(db.String(255), nullable=False)
    branch = db.Column(db.String(255), nullable=False)
    semester = db.Column(db.String(50), nullable=False)

    batch_type = db.Column(db.Enum(*BATCH_TYPES, name="batch_types", validate_strings=True), nullable=False)
    registration_type = db.Column(
        db.Enum(*REGISTRATION_TYPES, name="registration_types", validate_strings=True),
        nullable=False
    )

    project_title = db.Column(db.Text, nullable=False)
    group_members = db.Column(db.JSON, nullable=False, default=list)

    # Payment proof: public URL and storage key (used for deletion)
    payment_screenshot_path = db.Column(db.Text)
    payment_screenshot_file_name = db.Column(db.Text)

    status = db.Column(
        db.Enum(*STATUSES, name="registration_status", validate_strings=True),
        nullable=False,
        default="pending",
        index=True
    )

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    # no onupdate: the project id is written right after the insert, and
    # registration_store bumps this itself on every later change
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @staticmethod
    def format_project_id(registration_id):
        return f"PROJ-{registration_id:06d}"

    def registration_number(self, prefix="HIGBEC"):
        return f"{prefix}-{self.id:06d}"

    def to_dict(self):
        return {
            "id": self.id,
            "projectId": self.project_id,
            "fullName": self.full_name,
            "phoneNumber": self.phone_number,
            "email": self.email,
            "collegeName": self.college_name,
            "branch": self.branch,
            "semester": self.semester,
            "batchType": self.batch_type,
            "registrationType": self.registration_type,
            "projectTitle": self.project_title,
            "groupMembers": list(self.group_members or []),
            "paymentScreenshot": self.payment_screenshot_path,
            "paymentScreenshotPath": self.payment_screenshot_path,
            "paymentScreenshotFileName": self.payment_screenshot_file_name,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<ProjectRegistration {self.project_id} {self.email} {self.status}>"
