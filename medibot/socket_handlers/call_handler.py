# /medibot/socket_handlers/call_handler.py
from flask import request
from flask_socketio import emit, join_room, leave_room
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from medibot.errors import MedibotError
from medibot.extensions import socketio
from medibot.services.notifications import user_room
from medibot.services.video_provisioner import video_provisioner
import logging

# Authenticated socket sessions: {sid: {'user_id': ..., 'role': ...}}
active_sessions = {}


def get_identity_from_token():
    """Extract (user_id, role) from the JWT passed as ?token=."""
    token = request.args.get('token')
    if not token:
        return None
    try:
        decoded_token = decode_token(token)
    except (JWTExtendedException, PyJWTError) as e:
        logging.warning(f"Socket token validation error: {e}")
        return None
    return decoded_token['sub'], decoded_token.get('role')


def _session():
    return active_sessions.get(request.sid)


@socketio.on('connect')
def handle_connect():
    """Handle client connection."""
    identity = get_identity_from_token()
    if identity is None:
        # Rejects the connection
        return False

    user_id, role = identity
    active_sessions[request.sid] = {'user_id': user_id, 'role': role}

    # Personal room for appointment_updated events
    join_room(user_room(user_id))

    emit('connected', {'message': 'Connected successfully', 'user_id': user_id})
    logging.info(f"User {user_id} connected with session {request.sid}")


@socketio.on('disconnect')
def handle_disconnect():
    """Handle client disconnection."""
    session = active_sessions.pop(request.sid, None)
    if session:
        logging.info(f"User {session['user_id']} disconnected (session {request.sid})")


@socketio.on('join_call')
def handle_join_call(data):
    """Join a video room and announce the participant to the others in it."""
    session = _session()
    if not session:
        emit('error', {'message': 'Authentication required'})
        return

    room_id = (data or {}).get('roomId')
    if not room_id:
        emit('error', {'message': 'Room ID is required'})
        return

    try:
        room, participant = video_provisioner.record_join(
            room_id, session['user_id'], name=(data or {}).get('name'), role=session['role']
        )
    except MedibotError as e:
        emit('error', {'message': e.message, 'roomId': room_id})
        return

    join_room(room_id)
    emit('participant_joined', {
        'roomId': room_id,
        'participant': participant,
        'status': room.status
    }, to=room_id)


@socketio.on('leave_call')
def handle_leave_call(data):
    """Leave a video room."""
    session = _session()
    if not session:
        emit('error', {'message': 'Authentication required'})
        return

    room_id = (data or {}).get('roomId')
    if not room_id:
        emit('error', {'message': 'Room ID is required'})
        return

    try:
        room, participant = video_provisioner.record_leave(room_id, session['user_id'], role=session['role'])
    except MedibotError as e:
        emit('error', {'message': e.message, 'roomId': room_id})
        return

    if participant is not None:
        emit('participant_left', {'roomId': room_id, 'participant': participant}, to=room_id)
    leave_room(room_id)
