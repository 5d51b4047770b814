"""
Flask CLI commands
"""

from flask_jwt_extended import decode_token

from medibot.extensions import db
from medibot.models.doctor_models import Doctor


class TestCommands:

    def test_seed_doctors_is_repeatable(self, app):
        runner = app.test_cli_runner()

        first = runner.invoke(args=['seed-doctors'])
        assert first.exit_code == 0
        assert Doctor.query.count() == 5
        assert db.session.get(Doctor, 'doc_002').specialty == 'Cardiology'

        second = runner.invoke(args=['seed-doctors'])
        assert '0 added' in second.output
        assert Doctor.query.count() == 5

    def test_issue_token(self, app):
        result = app.test_cli_runner().invoke(args=['issue-token', 'user_42', '--role', 'doctor'])

        assert result.exit_code == 0
        claims = decode_token(result.output.strip())
        assert claims['sub'] == 'user_42'
        assert claims['role'] == 'doctor'

    def test_issue_token_rejects_unknown_role(self, app):
        result = app.test_cli_runner().invoke(args=['issue-token', 'user_42', '--role', 'nurse'])
        assert result.exit_code != 0
