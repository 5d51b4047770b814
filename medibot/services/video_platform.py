"""
Video Platform REST Client
==========================

Thin wrapper over the hosted video platform's REST API:
- Session (room) creation with recording/chat/screen-share properties
- Role-scoped meeting tokens (moderator = room owner, publisher = participant)

Every failure is raised as VideoPlatformError; callers decide whether it
is fatal.
"""

from typing import Dict, Any
from datetime import datetime
import calendar
import logging

import requests

from medibot.errors import VideoPlatformError

logger = logging.getLogger(__name__)

TOKEN_ROLES = ('moderator', 'publisher')


def _epoch(moment: datetime) -> int:
    """Unix time for a naive UTC datetime."""
    return calendar.timegm(moment.utctimetuple())


class VideoPlatformClient:
    """Creates sessions and access tokens on the video platform."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "VideoPlatformClient":
        return cls(
            base_url=config['VIDEO_API_BASE_URL'],
            api_key=config.get('VIDEO_API_KEY'),
            timeout=config.get('VIDEO_API_TIMEOUT', 10),
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise VideoPlatformError("Video platform is not configured")

        try:
            response = requests.post(
                f"{self.base_url}{path}",
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Video platform request to {path} failed: {e}")
            raise VideoPlatformError()

        if response.status_code != 200:
            logger.error(f"Video platform returned {response.status_code} for {path}: {response.text}")
            raise VideoPlatformError()

        try:
            return response.json()
        except ValueError:
            logger.error(f"Video platform returned a non-JSON body for {path}")
            raise VideoPlatformError()

    def create_session(
        self,
        room_name: str,
        expires_at: datetime,
        enable_recording: bool = True,
        enable_chat: bool = True,
        enable_screenshare: bool = True,
        max_participants: int = 2
    ) -> str:
        """
        Create a private, routed session for a consultation.

        Returns:
            The platform's session identifier
        """
        payload = {
            "name": room_name,
            "privacy": "private",
            "properties": {
                "enable_recording": "cloud" if enable_recording else None,
                "enable_chat": enable_chat,
                "enable_screenshare": enable_screenshare,
                "max_participants": max_participants,
                "exp": _epoch(expires_at),
                "eject_at_room_exp": True,
            }
        }

        session = self._post("/rooms", payload)
        session_id = session.get("id") or session.get("name")
        if not session_id:
            logger.error(f"Video platform response for {room_name} carried no session id")
            raise VideoPlatformError()

        logger.info(f"Created video session {session_id} for room {room_name}")
        return session_id

    def create_token(
        self,
        room_name: str,
        user_id: str,
        user_name: str,
        role: str,
        expires_at: datetime
    ) -> str:
        """
        Create an access token for one participant.

        Args:
            room_name: Room the token is scoped to
            user_id: Internal user ID (for tracking, not displayed)
            user_name: Display name
            role: 'moderator' (doctor) or 'publisher' (patient)
            expires_at: Token expiry (UTC)
        """
        if role not in TOKEN_ROLES:
            raise ValueError(f"Unknown token role: {role}")

        is_owner = role == 'moderator'
        payload = {
            "properties": {
                "room_name": room_name,
                "user_id": user_id,
                "user_name": user_name,
                "is_owner": is_owner,
                "enable_screenshare": True,
                "enable_recording": "cloud" if is_owner else None,
                "exp": _epoch(expires_at),
            }
        }

        token = self._post("/meeting-tokens", payload).get("token")
        if not token:
            logger.error(f"Video platform returned no token for {role} in {room_name}")
            raise VideoPlatformError()
        return token
