from datetime import datetime
from medibot.extensions import db

USER_TYPES = ('patient', 'doctor', 'admin')


class User(db.Model):
    """Local mirror of an identity managed by the external auth provider."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    auth_provider_id = db.Column(db.String(128), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(255), nullable=False, default='')
    last_name = db.Column(db.String(255), nullable=False, default='')
    phone = db.Column(db.String(64))
    date_of_birth = db.Column(db.String(10))
    user_type = db.Column(db.String(20), nullable=False, default='patient')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<User {self.auth_provider_id} ({self.user_type})>'

    def to_dict(self):
        return {
            'id': self.id,
            'authProviderId': self.auth_provider_id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'phone': self.phone,
            'dateOfBirth': self.date_of_birth,
            'userType': self.user_type,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
