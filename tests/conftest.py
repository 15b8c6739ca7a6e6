import pytest

from app import create_app
from config import TestConfig
from services import get_service


@pytest.fixture
def app():
    return create_app(TestConfig)


@pytest.fixture
def svc(app):
    with app.app_context():
        service = get_service()
        service.initialise()
        yield service


@pytest.fixture
def patient(svc):
    return svc.add_patient('John', 30, 'john@email.com', 'https://photo.com')
