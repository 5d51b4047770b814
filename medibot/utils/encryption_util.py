# /medibot/utils/encryption_util.py
from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from flask import current_app


class Encryptor:
    """
    Symmetric encryption for sensitive columns (doctor notes, video access tokens).

    MEDIBOT_ENCRYPTION_KEY may hold several comma separated Fernet keys during a
    key rotation: the first one encrypts, any of them decrypts.
    """
    def __init__(self, app=None):
        self.fernet = None
        if app:
            self.init_app(app)

    def init_app(self, app):
        keys = [key.strip() for key in (app.config.get('MEDIBOT_ENCRYPTION_KEY') or '').split(',') if key.strip()]
        if not keys:
            raise ValueError("MEDIBOT_ENCRYPTION_KEY not set in the Flask application config.")

        self.fernet = MultiFernet([Fernet(key.encode()) for key in keys])

    def _suite(self):
        if self.fernet is None:
            raise RuntimeError("Encryptor has not been initialized with an app context.")
        return self.fernet

    def encrypt(self, data) -> str:
        if not isinstance(data, str):
            data = str(data)
        return self._suite().encrypt(data.encode('utf-8')).decode('utf-8')

    def decrypt(self, token):
        """Returns the plaintext, or None for an empty or unreadable token."""
        suite = self._suite()
        if not token:
            return None
        try:
            return suite.decrypt(token.encode('utf-8')).decode('utf-8')
        except InvalidToken:
            current_app.logger.error("Decryption failed: value was not encrypted with a configured key.")
            return None


# Create a single, uninitialized instance to be imported by other modules.
encryptor = Encryptor()
