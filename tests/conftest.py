"""
Pytest configuration for the MediBot API tests
"""

import pytest
from unittest.mock import MagicMock, patch

from flask_jwt_extended import create_access_token

from medibot import create_app
from medibot.extensions import db
from medibot.models.doctor_models import Doctor

PATIENT_ID = 'user_patient_1'
OTHER_PATIENT_ID = 'user_patient_2'
DOCTOR_USER_ID = 'user_doctor_1'
OTHER_DOCTOR_USER_ID = 'user_doctor_2'
ADMIN_ID = 'user_admin_1'


@pytest.fixture
def app():
    app = create_app('testing')
    ctx = app.app_context()
    ctx.push()
    db.create_all()

    yield app

    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def smtp():
    """No test talks to a real mail server."""
    with patch('medibot.utils.email_util.smtplib.SMTP') as mock_smtp:
        yield mock_smtp


def _video_response(url, headers=None, json=None, timeout=None):
    response = MagicMock()
    response.status_code = 200
    if url.endswith('/rooms'):
        response.json.return_value = {'id': f"session-{json['name']}", 'name': json['name']}
    else:
        properties = json['properties']
        kind = 'owner' if properties['is_owner'] else 'guest'
        response.json.return_value = {'token': f"token-{properties['user_id']}-{kind}"}
    return response


@pytest.fixture
def video_api():
    """Stubs the video platform REST API: sessions and meeting tokens."""
    with patch('medibot.services.video_platform.requests.post', side_effect=_video_response) as mock_post:
        yield mock_post


@pytest.fixture
def make_headers(app):
    def _make(user_id, role):
        token = create_access_token(identity=user_id, additional_claims={'role': role})
        return {'Authorization': f'Bearer {token}'}
    return _make


@pytest.fixture
def patient_headers(make_headers):
    return make_headers(PATIENT_ID, 'patient')


@pytest.fixture
def other_patient_headers(make_headers):
    return make_headers(OTHER_PATIENT_ID, 'patient')


@pytest.fixture
def doctor_headers(make_headers):
    return make_headers(DOCTOR_USER_ID, 'doctor')


@pytest.fixture
def other_doctor_headers(make_headers):
    return make_headers(OTHER_DOCTOR_USER_ID, 'doctor')


@pytest.fixture
def admin_headers(make_headers):
    return make_headers(ADMIN_ID, 'admin')


@pytest.fixture
def doctors(app):
    """Directory with two active doctors and one inactive one."""
    entries = [
        Doctor(id='doc_001', auth_provider_id=DOCTOR_USER_ID, name='Dr. Sarah Johnson',
               specialty='General Medicine', email='sarah.johnson@medibot.com', consultation_fee=150),
        Doctor(id='doc_002', auth_provider_id=OTHER_DOCTOR_USER_ID, name='Dr. Michael Chen',
               specialty='Cardiology', email='michael.chen@medibot.com', consultation_fee=250),
        Doctor(id='doc_009', name='Dr. Retired Person', specialty='Cardiology',
               email='retired@medibot.com', status='inactive'),
    ]
    db.session.add_all(entries)
    db.session.commit()
    return entries


@pytest.fixture
def booking_payload():
    return {
        'patientName': 'John Doe',
        'patientEmail': 'john@example.com',
        'appointmentDate': '2024-01-25',
        'appointmentTime': '10:00',
        'reason': 'Regular checkup',
    }


@pytest.fixture
def book(client, patient_headers, booking_payload):
    """Books an open appointment as the default patient and returns its JSON."""
    def _book(headers=None, **overrides):
        payload = dict(booking_payload, **overrides)
        response = client.post('/api/appointments', json=payload, headers=headers or patient_headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['appointment']
    return _book


@pytest.fixture
def approved_appointment(client, book, doctors, doctor_headers):
    appointment = book()
    response = client.put(f"/api/appointments/{appointment['id']}",
                          json={'status': 'approved'}, headers=doctor_headers)
    assert response.status_code == 200, response.get_json()
    return response.get_json()['appointment']
