# /medibot/services/video_provisioner.py
"""
Video Room Provisioner
======================

One video room per approved appointment:
- Idempotent creation (an existing room is returned unchanged)
- Doctor token = moderator, patient token = publisher, each with a fixed TTL
- Rooms expire a fixed horizon after creation; expired rooms are ended
  and never hand out tokens again
- Participant roster kept from join/leave events
"""
import secrets
import string
import time
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from medibot.errors import (
    AppointmentNotFound, InvalidRoomState, StoreUnavailable,
    VideoCallForbidden, VideoRoomExpired, VideoRoomNotFound
)
from medibot.extensions import db
from medibot.models.appointment_models import Appointment
from medibot.models.doctor_models import doctor_id_for_identity
from medibot.models.video_room_models import VideoRoom
from medibot.services.video_platform import VideoPlatformClient
from medibot.utils.encryption_util import encryptor

_ROOM_SUFFIX_CHARS = string.ascii_lowercase + string.digits


def generate_room_id():
    suffix = ''.join(secrets.choice(_ROOM_SUFFIX_CHARS) for _ in range(7))
    return f"medibot_{int(time.time() * 1000)}_{suffix}"


def _timestamp(moment):
    return moment.isoformat()


class VideoRoomProvisioner:

    def __init__(self, client_factory=None):
        self._client_factory = client_factory or VideoPlatformClient.from_config

    def _client(self):
        return self._client_factory(current_app.config)

    def _commit(self, action):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to {action}: {e}")
            raise StoreUnavailable()

    def find_room(self, appointment_id=None, room_id=None):
        if appointment_id:
            return VideoRoom.query.filter_by(appointment_id=appointment_id).first()
        if room_id:
            return VideoRoom.query.filter_by(room_id=room_id).first()
        return None

    def ensure_room(self, appointment_id, doctor_id, patient_id, doctor_name=None, patient_name=None):
        """
        Returns the room for an appointment, provisioning it on first request.

        Raises:
            AppointmentNotFound: unknown appointment.
            InvalidRoomState: the appointment is not approved.
            VideoPlatformError: the platform could not create the session or tokens.
        """
        existing = self.find_room(appointment_id=appointment_id)
        if existing is not None:
            current_app.logger.info(f"Video room already exists for appointment {appointment_id}: {existing.room_id}")
            return existing, False

        appointment = db.session.get(Appointment, appointment_id)
        if appointment is None:
            raise AppointmentNotFound()
        if appointment.status != 'approved':
            raise InvalidRoomState(f"Video rooms can only be created for approved appointments (status: {appointment.status})")

        config = current_app.config
        doctor_name = doctor_name or appointment.doctor_name or 'Doctor'
        patient_name = patient_name or appointment.patient_name or 'Patient'

        now = datetime.utcnow()
        expires_at = now + timedelta(hours=config['VIDEO_ROOM_TTL_HOURS'])
        token_expires_at = now + timedelta(hours=config['VIDEO_TOKEN_TTL_HOURS'])
        room_id = generate_room_id()

        # Platform errors propagate: a room that cannot be created must not look created
        client = self._client()
        session_id = client.create_session(room_id, expires_at)
        doctor_token = client.create_token(room_id, doctor_id, doctor_name, 'moderator', token_expires_at)
        patient_token = client.create_token(room_id, patient_id, patient_name, 'publisher', token_expires_at)

        room = VideoRoom(
            room_id=room_id,
            appointment_id=appointment_id,
            session_id=session_id,
            room_url=f"{config['APP_BASE_URL'].rstrip('/')}/video-call/{room_id}",
            doctor_token=encryptor.encrypt(doctor_token),
            doctor_token_expires_at=token_expires_at,
            patient_token=encryptor.encrypt(patient_token),
            patient_token_expires_at=token_expires_at,
            status='created',
            recording_enabled=True,
            chat_enabled=True,
            screen_share_enabled=True,
            max_duration=config['VIDEO_MAX_DURATION_MINUTES'],
            participants=[
                {'id': doctor_id, 'name': doctor_name, 'role': 'doctor'},
                {'id': patient_id, 'name': patient_name, 'role': 'patient'},
            ],
            created_at=now,
            expires_at=expires_at,
        )
        db.session.add(room)

        appointment.meeting_link = room.room_url
        if now <= appointment.updated_at:
            now = appointment.updated_at + timedelta(microseconds=1)
        appointment.updated_at = now

        try:
            db.session.commit()
        except IntegrityError:
            # Another request provisioned the room first
            db.session.rollback()
            winner = self.find_room(appointment_id=appointment_id)
            if winner is None:
                raise StoreUnavailable()
            current_app.logger.info(f"Concurrent provisioning for appointment {appointment_id}, using {winner.room_id}")
            return winner, False
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to store video room for appointment {appointment_id}: {e}")
            raise StoreUnavailable()

        current_app.logger.info(f"Video room created: {room_id} (session {session_id}) for appointment {appointment_id}")
        return room, True

    def check_live(self, room, now=None):
        """Ends the room if it is past its horizon and raises for any room that is not live."""
        if room.status == 'ended':
            raise VideoRoomExpired('Video call has ended')
        if room.is_expired(now):
            room.status = 'ended'
            self._commit(f"end expired room {room.room_id}")
            current_app.logger.info(f"Video room {room.room_id} expired at {room.expires_at.isoformat()}")
            raise VideoRoomExpired()
        return room

    def get_room(self, appointment_id=None, room_id=None, now=None):
        room = self.find_room(appointment_id=appointment_id, room_id=room_id)
        if room is None:
            raise VideoRoomNotFound()
        return self.check_live(room, now)

    def end_room(self, room_id):
        room = self.find_room(room_id=room_id)
        if room is None:
            raise VideoRoomNotFound()
        if room.status == 'ended':
            return room

        left_at = _timestamp(datetime.utcnow())
        roster = []
        for participant in room.participants or []:
            participant = dict(participant)
            if participant.get('joinedAt') and not participant.get('leftAt'):
                participant['leftAt'] = left_at
            roster.append(participant)
        room.participants = roster
        room.status = 'ended'
        self._commit(f"end room {room_id}")
        current_app.logger.info(f"Video room ended: {room_id}")
        return room

    def resolve_participant(self, room, user_id, role):
        """
        Roster id of the caller in a room.

        The patient joins under their own id and the doctor under the
        appointment's directory id. Anyone else raises VideoCallForbidden.
        """
        appointment = room.appointment
        if appointment is not None:
            if role == 'patient' and appointment.patient_id == user_id:
                return user_id
            if role == 'doctor' and appointment.doctor_id and appointment.doctor_id == doctor_id_for_identity(user_id):
                return appointment.doctor_id
        current_app.logger.warning(f"User {user_id} ({role}) is not a participant in room {room.room_id}")
        raise VideoCallForbidden()

    def record_join(self, room_id, user_id, name=None, role=None):
        room = self.get_room(room_id=room_id)
        participant_id = self.resolve_participant(room, user_id, role)

        joined_at = _timestamp(datetime.utcnow())
        roster = [dict(p) for p in room.participants or []]
        entry = next((p for p in roster if p.get('id') == participant_id), None)
        if entry is None:
            entry = {'id': participant_id, 'name': name or role or 'Participant', 'role': role}
            roster.append(entry)
        entry['joinedAt'] = joined_at
        entry.pop('leftAt', None)

        room.participants = roster
        if room.status == 'created':
            room.status = 'active'
        self._commit(f"record join in room {room_id}")
        return room, entry

    def record_leave(self, room_id, user_id, role=None):
        room = self.find_room(room_id=room_id)
        if room is None:
            raise VideoRoomNotFound()
        participant_id = self.resolve_participant(room, user_id, role)

        roster = [dict(p) for p in room.participants or []]
        entry = next((p for p in roster if p.get('id') == participant_id), None)
        if entry is None:
            return room, None
        entry['leftAt'] = _timestamp(datetime.utcnow())

        room.participants = roster
        self._commit(f"record leave in room {room_id}")
        return room, entry


video_provisioner = VideoRoomProvisioner()
