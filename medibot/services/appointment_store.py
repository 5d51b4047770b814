# /medibot/services/appointment_store.py
"""Persistence for appointments.

All reads and writes go through the database session; nothing is cached in
process memory between requests.
"""
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from medibot.errors import AppointmentNotFound, ConcurrentUpdateError, StoreUnavailable
from medibot.extensions import db
from medibot.models.appointment_models import Appointment, APPOINTMENT_STATUSES
from medibot.utils.encryption_util import encryptor

ENCRYPTED_FIELDS = frozenset({'doctor_notes'})


class AppointmentStore:
    """create / get / list / update / delete over the appointments table."""

    def _commit(self, action, appointment_id=None):
        try:
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            current_app.logger.warning(f"Concurrent update detected on appointment {appointment_id}")
            raise ConcurrentUpdateError()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to {action} appointment {appointment_id or ''}: {e}")
            raise StoreUnavailable()

    def _assign(self, appointment, field, value):
        if field in ENCRYPTED_FIELDS and value is not None:
            value = encryptor.encrypt(value)
        setattr(appointment, field, value)

    def create(self, data: dict) -> Appointment:
        """Persists a new appointment from column-named fields and returns it."""
        now = datetime.utcnow()
        status = data.get('status')
        if status not in APPOINTMENT_STATUSES:
            status = 'pending'

        appointment = Appointment(status=status, created_at=now, updated_at=now)
        for field, value in data.items():
            if field in ('id', 'status', 'created_at', 'updated_at', 'version'):
                continue
            self._assign(appointment, field, value)

        db.session.add(appointment)
        self._commit('create')
        current_app.logger.info(f"Appointment created: {appointment.id}")
        return appointment

    def get(self, appointment_id: str) -> Appointment:
        try:
            appointment = db.session.get(Appointment, appointment_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to load appointment {appointment_id}: {e}")
            raise StoreUnavailable()
        if appointment is None:
            raise AppointmentNotFound()
        return appointment

    def list(self, patient_id=None, doctor_id=None, status=None):
        """Returns (appointments, count), newest first; filters are AND-combined."""
        query = Appointment.query
        if patient_id:
            query = query.filter(Appointment.patient_id == patient_id)
        if doctor_id:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if status:
            query = query.filter(Appointment.status == status)

        try:
            appointments = query.order_by(Appointment.created_at.desc()).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to list appointments: {e}")
            raise StoreUnavailable()
        return appointments, len(appointments)

    def update(self, appointment_id: str, fields: dict, guard=None) -> Appointment:
        """
        Merges `fields` into the stored appointment.

        Only keys present in `fields` are written; a key mapped to an empty
        value is still written. The row is locked for the read-modify-write,
        and the version counter rejects a merge based on a stale read.

        Args:
            appointment_id (str): Appointment to update.
            fields (dict): Column-named fields to merge.
            guard (callable): Optional check run against the locked row before
                merging; it raises to abort the update.
        """
        try:
            appointment = (Appointment.query
                           .filter(Appointment.id == appointment_id)
                           .with_for_update()
                           .one_or_none())
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to lock appointment {appointment_id}: {e}")
            raise StoreUnavailable()

        if appointment is None:
            raise AppointmentNotFound()

        if guard is not None:
            try:
                guard(appointment)
            except Exception:
                db.session.rollback()
                raise

        for field, value in fields.items():
            if field in ('id', 'created_at', 'updated_at', 'version'):
                continue
            self._assign(appointment, field, value)

        # updated_at strictly increases on every mutation
        now = datetime.utcnow()
        if now <= appointment.updated_at:
            now = appointment.updated_at + timedelta(microseconds=1)
        appointment.updated_at = now
        self._commit('update', appointment_id)
        current_app.logger.info(f"Appointment updated: {appointment_id} ({', '.join(fields) or 'no fields'})")
        return appointment

    def delete(self, appointment_id: str) -> dict:
        """Removes the appointment and returns its last serialized state."""
        appointment = self.get(appointment_id)
        snapshot = appointment.to_dict()
        db.session.delete(appointment)
        self._commit('delete', appointment_id)
        current_app.logger.info(f"Appointment deleted: {appointment_id}")
        return snapshot

    def count_by_status(self):
        """Returns {status: count} for every known status plus 'total'."""
        try:
            rows = (db.session.query(Appointment.status, db.func.count(Appointment.id))
                    .group_by(Appointment.status)
                    .all())
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to count appointments: {e}")
            raise StoreUnavailable()

        counts = {status: 0 for status in APPOINTMENT_STATUSES}
        for status, count in rows:
            counts[status] = count
        counts['total'] = sum(count for _, count in rows)
        return counts

    def count_on_date(self, date_str: str) -> int:
        try:
            return Appointment.query.filter(Appointment.appointment_date == date_str).count()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to count appointments on {date_str}: {e}")
            raise StoreUnavailable()


appointment_store = AppointmentStore()
