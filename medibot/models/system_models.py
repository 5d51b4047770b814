# /medibot/models/system_models.py
from datetime import datetime
from medibot.extensions import db


class AuditLog(db.Model):
    """HIPAA-required audit logging"""
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    # Identity from the bearer token (the auth provider's user id)
    user_id = db.Column(db.String(128), index=True)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    action = db.Column(db.String(100), nullable=False)
    resource = db.Column(db.String(100))
    resource_id = db.Column(db.String(100))
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.String(255))
    success = db.Column(db.Boolean, default=True)
    details = db.Column(db.Text)
