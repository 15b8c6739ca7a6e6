import enum
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin

db = SQLAlchemy()


def utcnow():
    """Naive UTC timestamp, the form SQLite DateTime columns round-trip."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(enum.Enum):
    admin = 'admin'
    staff = 'staff'
    patient = 'patient'


class MedicineRange(enum.Enum):
    ALL = 'all'
    OPEN = 'open'
    CLOSED = 'closed'


# AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again
class User(UserMixin, db.Model):
    __table_args__ = {'sqlite_autoincrement': True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(100), nullable=False)  # compared as given
    role = db.Column(db.Enum(Role), nullable=False, default=Role.staff)

    def __repr__(self):
        return f'<User {self.id} {self.email} ({self.role.name})>'


class Patient(db.Model):
    __table_args__ = {'sqlite_autoincrement': True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    photo_url = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    medicine_requests = db.relationship(
        'MedicineRequest', backref='patient', lazy=True,
        cascade='all, delete-orphan', order_by='MedicineRequest.id'
    )

    def __repr__(self):
        return f'<Patient {self.id} {self.email}>'


class MedicineRequest(db.Model):
    __table_args__ = {'sqlite_autoincrement': True}

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.Integer, db.ForeignKey('patient.id'), nullable=False)
    description = db.Column(db.Text, nullable=False)
    created_on = db.Column(db.DateTime, default=utcnow)
    active = db.Column(db.Boolean, nullable=False, default=True)
    resolution = db.Column(db.Text)        # set once, on close
    resolved_on = db.Column(db.DateTime)   # set once, on close

    def __repr__(self):
        state = 'open' if self.active else 'closed'
        return f'<MedicineRequest {self.id} patient={self.patient_id} {state}>'
