"""
Appointment store: persistence, presence-based merges and concurrent updates
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from medibot.errors import AppointmentNotFound, ConcurrentUpdateError, TransitionNotAllowed
from medibot.extensions import db
from medibot.models.appointment_models import Appointment
from medibot.services.appointment_store import appointment_store
from medibot.services.status_machine import check_transition


def _fields(**overrides):
    fields = {
        'patient_id': 'user_patient_1',
        'patient_name': 'John Doe',
        'patient_email': 'john@example.com',
        'appointment_date': '2024-01-25',
        'appointment_time': '10:00',
        'reason': 'Regular checkup',
    }
    fields.update(overrides)
    return fields


class TestCreateAndGet:

    def test_defaults(self, app):
        appointment = appointment_store.create(_fields())
        assert appointment.id
        assert appointment.status == 'pending'
        assert appointment.symptoms == ''
        assert appointment.consultation_fee == 0
        assert appointment.created_at == appointment.updated_at

    def test_ids_are_unique(self, app):
        ids = {appointment_store.create(_fields()).id for _ in range(5)}
        assert len(ids) == 5

    def test_get_unknown(self, app):
        with pytest.raises(AppointmentNotFound):
            appointment_store.get('does-not-exist')

    def test_doctor_notes_encrypted_at_rest(self, app):
        appointment = appointment_store.create(_fields(doctor_notes='Bring previous lab results'))
        raw = db.session.execute(
            text('SELECT doctor_notes FROM appointments WHERE id = :id'), {'id': appointment.id}
        ).scalar()
        assert raw != 'Bring previous lab results'
        assert appointment.to_dict()['doctorNotes'] == 'Bring previous lab results'


class TestList:

    def test_newest_first_and_filters(self, app):
        first = appointment_store.create(_fields())
        second = appointment_store.create(_fields(doctor_id='doc_001'))
        third = appointment_store.create(_fields(patient_id='user_patient_2', doctor_id='doc_001'))

        # Force distinct creation times
        base = datetime.utcnow()
        for offset, appointment in enumerate((first, second, third)):
            appointment.created_at = base + timedelta(seconds=offset)
        db.session.commit()

        everything, total = appointment_store.list()
        assert total == 3
        assert [a.id for a in everything] == [third.id, second.id, first.id]

        by_doctor, _ = appointment_store.list(doctor_id='doc_001')
        assert {a.id for a in by_doctor} == {second.id, third.id}

        combined, count = appointment_store.list(patient_id='user_patient_1', doctor_id='doc_001')
        assert [a.id for a in combined] == [second.id]
        assert count == 1

    def test_count_by_status(self, app):
        appointment_store.create(_fields())
        appointment_store.create(_fields(status='approved'))
        counts = appointment_store.count_by_status()
        assert counts['pending'] == 1
        assert counts['approved'] == 1
        assert counts['cancelled'] == 0
        assert counts['total'] == 2


class TestUpdate:

    def test_only_supplied_fields_change(self, app):
        appointment = appointment_store.create(_fields(symptoms='Headache'))
        updated = appointment_store.update(appointment.id, {'doctor_notes': ''})

        assert updated.to_dict()['doctorNotes'] == ''
        assert updated.symptoms == 'Headache'
        assert updated.reason == 'Regular checkup'

    def test_updated_at_strictly_increases(self, app):
        appointment = appointment_store.create(_fields())
        created_at = appointment.created_at
        stamps = [appointment_store.update(appointment.id, {'meeting_link': str(i)}).updated_at for i in range(3)]

        assert stamps[0] > created_at
        assert stamps[0] < stamps[1] < stamps[2]
        assert appointment_store.get(appointment.id).created_at == created_at

    def test_identity_fields_are_immutable(self, app):
        appointment = appointment_store.create(_fields())
        original_id = appointment.id
        appointment_store.update(original_id, {'id': 'hijacked', 'reason': 'Follow-up'})
        assert appointment_store.get(original_id).reason == 'Follow-up'
        assert db.session.get(Appointment, 'hijacked') is None

    def test_guard_aborts_without_writing(self, app):
        appointment = appointment_store.create(_fields(status='completed'))

        def guard(row):
            check_transition(row.status, 'approved', 'doctor')

        with pytest.raises(TransitionNotAllowed):
            appointment_store.update(appointment.id, {'status': 'approved'}, guard=guard)
        assert appointment_store.get(appointment.id).status == 'completed'

    def test_stale_version_is_rejected(self, app):
        appointment = appointment_store.create(_fields())

        def concurrent_writer(row):
            # Another writer commits between our read and our write
            db.session.execute(
                text('UPDATE appointments SET version = version + 1 WHERE id = :id'), {'id': row.id}
            )

        with pytest.raises(ConcurrentUpdateError):
            appointment_store.update(appointment.id, {'status': 'approved'}, guard=concurrent_writer)

        assert appointment_store.get(appointment.id).status == 'pending'

    def test_update_unknown(self, app):
        with pytest.raises(AppointmentNotFound):
            appointment_store.update('missing', {'status': 'approved'})


class TestDelete:

    def test_delete_returns_snapshot(self, app):
        appointment = appointment_store.create(_fields())
        snapshot = appointment_store.delete(appointment.id)
        assert snapshot['id'] == appointment.id
        with pytest.raises(AppointmentNotFound):
            appointment_store.get(appointment.id)
