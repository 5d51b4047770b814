# /medibot/utils/email_util.py
import smtplib
import ssl
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from flask import current_app
from markupsafe import escape

NOTIFICATION_EVENTS = ('created', 'approved', 'rejected', 'completed', 'cancelled')

PATIENT_SUBJECTS = {
    'created': 'Your appointment request has been received',
    'approved': 'Your appointment has been approved',
    'rejected': 'Your appointment request was declined',
    'completed': 'Your consultation is complete',
    'cancelled': 'Your appointment has been cancelled',
}


def format_appointment_date(value: str) -> str:
    """Formats a YYYY-MM-DD date as 'January 25, 2024', or returns it unchanged."""
    try:
        parsed = datetime.strptime(value, '%Y-%m-%d')
    except (TypeError, ValueError):
        return value
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def _appointment_lines(appointment: dict, include_fee: bool):
    lines = [
        ('Patient', appointment.get('patientName')),
        ('Email', appointment.get('patientEmail')),
        ('Phone', appointment.get('patientPhone') or 'Not provided'),
        ('Date', format_appointment_date(appointment.get('appointmentDate'))),
        ('Time', appointment.get('appointmentTime')),
        ('Reason', appointment.get('reason')),
        ('Symptoms', appointment.get('symptoms') or 'None reported'),
    ]
    if include_fee:
        lines.append(('Consultation Fee', f"${appointment.get('consultationFee') or 0}"))
    return lines


def build_notification(appointment: dict, event: str):
    """
    Composes the notification for an appointment event.

    Args:
        appointment (dict): The serialized appointment.
        event (str): One of NOTIFICATION_EVENTS.

    Returns:
        tuple: (recipient, subject, text, html), or None when nobody can be notified.
    """
    doctor_facing = event == 'created' and bool(appointment.get('doctorEmail'))

    if doctor_facing:
        recipient = appointment['doctorEmail']
        subject = f"New Appointment Request - {appointment.get('patientName')}"
        heading = 'New Appointment Request'
        closing = 'Please log in to your dashboard to approve or reject this appointment.'
    else:
        recipient = appointment.get('patientEmail')
        subject = PATIENT_SUBJECTS[event]
        heading = subject
        closing = 'Thank you for using MediBot.'
        if event == 'approved' and appointment.get('meetingLink'):
            closing = f"Join your consultation at {appointment['meetingLink']}"

    if not recipient:
        return None

    lines = _appointment_lines(appointment, include_fee=doctor_facing)
    notes = appointment.get('doctorNotes')
    if notes and not doctor_facing:
        lines.append(('Doctor Notes', notes))

    text = "\n".join([heading, ""] + [f"{label}: {value}" for label, value in lines] + ["", closing])
    html = f"""
    <html>
      <body>
        <h2>{escape(heading)}</h2>
        {''.join(f'<p><strong>{escape(label)}:</strong> {escape(value)}</p>' for label, value in lines)}
        <br>
        <p>{escape(closing)}</p>
      </body>
    </html>
    """
    return recipient, subject, text, html


def send_appointment_notification(appointment: dict, event: str) -> bool:
    """
    Sends a single best-effort email about an appointment event.

    Never raises: missing configuration, SMTP failures and timeouts are logged
    and reported through the return value.

    Args:
        appointment (dict): The serialized appointment.
        event (str): One of NOTIFICATION_EVENTS.

    Returns:
        bool: True if the message was handed to the mail server.
    """
    config = current_app.config
    mail_server = config.get('MAIL_SERVER')
    mail_port = config.get('MAIL_PORT', 587)
    mail_username = config.get('MAIL_USERNAME')
    mail_password = config.get('MAIL_PASSWORD')

    if event not in NOTIFICATION_EVENTS:
        current_app.logger.warning(f"Unknown notification event '{event}' for appointment {appointment.get('id')}")
        return False

    if not all([mail_server, mail_port, mail_username, mail_password]):
        current_app.logger.error("Email server is not configured. Cannot send appointment notification.")
        return False

    composed = build_notification(appointment, event)
    if composed is None:
        current_app.logger.info(f"No recipient for '{event}' notification on appointment {appointment.get('id')}")
        return False
    recipient, subject, text, html = composed

    sender_email = config.get('MAIL_SENDER') or mail_username

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = sender_email
    message["To"] = recipient

    message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))

    try:
        with smtplib.SMTP(mail_server, mail_port, timeout=config.get('MAIL_TIMEOUT', 5)) as server:
            if config.get('MAIL_USE_TLS', True):
                server.starttls(context=ssl.create_default_context())
            server.login(mail_username, mail_password)
            server.sendmail(sender_email, recipient, message.as_string())
        current_app.logger.info(f"Sent '{event}' notification for appointment {appointment.get('id')} to {recipient}")
        return True
    except Exception as e:
        current_app.logger.error(f"Failed to send '{event}' notification to {recipient}: {e}")
        return False
