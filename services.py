"""Record service: patients, medicine requests and user accounts.

Every operation that can collide with a stored record (duplicate email,
unknown id, request already closed) reports the collision by returning
``None`` (or ``False`` for deletes) instead of raising, so callers handle
"not found" and "conflict" as ordinary control flow.

Records handed back stay attached to the session so their attributes and
relationships keep loading, but every service call starts by rolling the
session back: edits made to them outside the service are discarded, never
committed.
"""
import logging
from functools import wraps

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from models import db, utcnow, Patient, MedicineRequest, User, Role, MedicineRange

logger = logging.getLogger(__name__)


def fresh_session(f):
    @wraps(f)
    def decorated_function(self, *args, **kwargs):
        self.session.rollback()
        return f(self, *args, **kwargs)
    return decorated_function


class RecordService:
    """Operates on the tables of the module-level ``db`` extension.

    All calls must run inside an application context of an app that
    extension was initialised with.
    """

    @property
    def session(self):
        return db.session

    def initialise(self):
        """Drop and recreate every table, clearing records and id counters."""
        self.session.rollback()
        self.session.expunge_all()
        db.drop_all()
        db.create_all()
        logger.info('Record store initialised')

    def _commit_new(self, record):
        self.session.add(record)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.warning('Rejected %s: unique constraint violated', type(record).__name__)
            return None
        return record

    # Patients

    @fresh_session
    def add_patient(self, name, age, email, photo_url):
        if self.get_patient_by_email(email) is not None:
            logger.warning('Patient email already registered: %s', email)
            return None

        patient = self._commit_new(Patient(name=name, age=age, email=email, photo_url=photo_url))
        if patient is not None:
            logger.info('Added patient %s', patient.id)
        return patient

    @fresh_session
    def get_patient(self, patient_id):
        return self.session.get(Patient, patient_id)

    @fresh_session
    def get_patient_by_email(self, email):
        return Patient.query.filter_by(email=email).first()

    @fresh_session
    def get_patients(self):
        return Patient.query.order_by(Patient.id).all()

    def update_patient(self, patient):
        # copy the new values out before the rollback discards them
        with self.session.no_autoflush:
            patient_id = patient.id
            values = {
                'name': patient.name,
                'age': patient.age,
                'email': patient.email,
                'photo_url': patient.photo_url,
            }
        self.session.rollback()

        stored = self.get_patient(patient_id) if patient_id is not None else None
        if stored is None:
            logger.warning('Cannot update missing patient %s', patient_id)
            return None

        for field, value in values.items():
            setattr(stored, field, value)
        try:
            self.session.commit()
        except IntegrityError:
            # another patient already owns the new email
            self.session.rollback()
            logger.warning('Rejected update of patient %s: email %s in use', patient_id, values['email'])
            return None
        return stored

    @fresh_session
    def delete_patient(self, patient_id):
        patient = self.get_patient(patient_id)
        if patient is None:
            return False

        self.session.delete(patient)
        self.session.commit()
        logger.info('Deleted patient %s', patient_id)
        return True

    # Medicine requests

    @fresh_session
    def create_medicine_request(self, patient_id, description):
        if self.get_patient(patient_id) is None:
            logger.warning('Cannot open medicine request for missing patient %s', patient_id)
            return None

        request = self._commit_new(MedicineRequest(
            patient_id=patient_id,
            description=description,
            active=True,
            resolution=None,
            resolved_on=None
        ))
        if request is not None:
            logger.info('Opened medicine request %s for patient %s', request.id, patient_id)
        return request

    @fresh_session
    def get_medicine_request(self, request_id):
        return self.session.get(MedicineRequest, request_id)

    @fresh_session
    def get_open_medicine_requests(self):
        return self._requests_in(MedicineRange.OPEN).all()

    @fresh_session
    def get_all_medicine_requests(self):
        return self._requests_in(MedicineRange.ALL).all()

    @fresh_session
    def close_medicine_request(self, request_id, resolution=None):
        """Close an open request. Returns None if it is missing or already closed."""
        stmt = (
            update(MedicineRequest)
            .where(MedicineRequest.id == request_id, MedicineRequest.active.is_(True))
            .values(active=False, resolution=resolution, resolved_on=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount != 1:
            self.session.rollback()
            logger.warning('Medicine request %s is missing or already closed', request_id)
            return None

        self.session.commit()
        logger.info('Closed medicine request %s', request_id)
        return self.get_medicine_request(request_id)

    @fresh_session
    def search_medicine_requests(self, request_range, text):
        if not isinstance(request_range, MedicineRange):
            request_range = MedicineRange[request_range]
        query = self._requests_in(request_range)
        if text:
            query = query.filter(MedicineRequest.description.icontains(text, autoescape=True))
        return query.all()

    def _requests_in(self, request_range):
        query = MedicineRequest.query
        if request_range == MedicineRange.OPEN:
            query = query.filter(MedicineRequest.active.is_(True))
        elif request_range == MedicineRange.CLOSED:
            query = query.filter(MedicineRequest.active.is_(False))
        return query.order_by(MedicineRequest.id)

    # Users

    @fresh_session
    def register(self, name, email, password, role):
        if self.get_user_by_email(email) is not None:
            logger.warning('User email already registered: %s', email)
            return None

        if not isinstance(role, Role):
            role = Role[role]
        user = self._commit_new(User(name=name, email=email, password=password, role=role))
        if user is not None:
            logger.info('Registered %s user %s', user.role.name, user.id)
        return user

    @fresh_session
    def get_user(self, user_id):
        return self.session.get(User, user_id)

    @fresh_session
    def get_user_by_email(self, email):
        return User.query.filter_by(email=email).first()

    @fresh_session
    def get_users(self):
        return User.query.order_by(User.id).all()

    @fresh_session
    def authenticate(self, email, password):
        user = self.get_user_by_email(email)
        if user is None or user.password != password:
            logger.info('Authentication failed for %s', email)
            return None
        return user


def get_service():
    """Return the record service bound to the current Flask app."""
    return current_app.extensions['records']
