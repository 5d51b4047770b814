import click
from flask.cli import with_appcontext
from flask_jwt_extended import create_access_token
from medibot.extensions import db
from medibot.models.doctor_models import Doctor
from medibot.models.user_models import USER_TYPES

# Reference doctor directory loaded by `flask seed-doctors`
REFERENCE_DOCTORS = [
    {
        'id': 'doc_001', 'auth_provider_id': 'seed_doctor_1',
        'name': 'Dr. Sarah Johnson', 'specialty': 'General Medicine',
        'email': 'sarah.johnson@medibot.com', 'phone': '+1 (555) 123-4567',
        'license_number': 'MD123456', 'experience': '8 years',
        'education': 'MD from Harvard Medical School',
        'about': 'General practitioner focused on preventive medicine and chronic disease management.',
        'languages': ['English', 'Spanish'],
        'availability': ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday'],
        'consultation_fee': 150, 'rating': 4.8, 'total_reviews': 245,
    },
    {
        'id': 'doc_002', 'auth_provider_id': 'seed_doctor_2',
        'name': 'Dr. Michael Chen', 'specialty': 'Cardiology',
        'email': 'michael.chen@medibot.com', 'phone': '+1 (555) 234-5678',
        'license_number': 'MD234567', 'experience': '12 years',
        'education': 'MD from Johns Hopkins University',
        'about': 'Board-certified cardiologist specializing in interventional cardiology and heart disease prevention.',
        'languages': ['English', 'Mandarin'],
        'availability': ['Monday', 'Wednesday', 'Friday'],
        'consultation_fee': 250, 'rating': 4.9, 'total_reviews': 189,
    },
    {
        'id': 'doc_003', 'auth_provider_id': 'seed_doctor_3',
        'name': 'Dr. Emily Rodriguez', 'specialty': 'Pediatrics',
        'email': 'emily.rodriguez@medibot.com', 'phone': '+1 (555) 345-6789',
        'license_number': 'MD345678', 'experience': '10 years',
        'education': 'MD from Stanford University',
        'about': 'Pediatrician caring for children and adolescents, with a focus on developmental pediatrics.',
        'languages': ['English', 'Spanish'],
        'availability': ['Tuesday', 'Thursday', 'Saturday'],
        'consultation_fee': 180, 'rating': 4.7, 'total_reviews': 156,
    },
    {
        'id': 'doc_004', 'auth_provider_id': 'seed_doctor_4',
        'name': 'Dr. David Wilson', 'specialty': 'Dermatology',
        'email': 'david.wilson@medibot.com', 'phone': '+1 (555) 456-7890',
        'license_number': 'MD456789', 'experience': '15 years',
        'education': 'MD from UCLA Medical School',
        'about': 'Dermatologist experienced in medical dermatology and skin cancer detection.',
        'languages': ['English'],
        'availability': ['Monday', 'Tuesday', 'Thursday', 'Friday'],
        'consultation_fee': 200, 'rating': 4.6, 'total_reviews': 203,
    },
    {
        'id': 'doc_005', 'auth_provider_id': 'seed_doctor_5',
        'name': 'Dr. Lisa Thompson', 'specialty': 'Psychiatry',
        'email': 'lisa.thompson@medibot.com', 'phone': '+1 (555) 567-8901',
        'license_number': 'MD567890', 'experience': '9 years',
        'education': 'MD from Yale University',
        'about': 'Psychiatrist specializing in anxiety disorders, depression and cognitive behavioral therapy.',
        'languages': ['English', 'French'],
        'availability': ['Monday', 'Wednesday', 'Thursday', 'Friday'],
        'consultation_fee': 220, 'rating': 4.8, 'total_reviews': 167,
    },
]


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all database tables."""
    db.create_all()
    click.echo("Database initialized successfully!")


@click.command('seed-doctors')
@with_appcontext
def seed_doctors_command():
    """Load the reference doctor directory. Existing entries are left untouched."""
    added = 0
    for doctor_data in REFERENCE_DOCTORS:
        if db.session.get(Doctor, doctor_data['id']):
            click.echo(f"Doctor already exists: {doctor_data['name']}")
            continue
        db.session.add(Doctor(image='/placeholder-user.jpg', status='active', **doctor_data))
        added += 1
        click.echo(f"Added doctor: {doctor_data['name']}")

    db.session.commit()
    click.echo(f"Doctor directory seeded ({added} added).")


@click.command('issue-token')
@click.argument('user_id')
@click.option('--role', type=click.Choice(USER_TYPES), default='patient', show_default=True)
@with_appcontext
def issue_token_command(user_id, role):
    """Print a development bearer token for USER_ID."""
    token = create_access_token(identity=user_id, additional_claims={'role': role})
    click.echo(token)


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_doctors_command)
    app.cli.add_command(issue_token_command)
