"""
Appointment status transitions
"""

import pytest

from medibot.errors import TransitionForbidden, TransitionNotAllowed
from medibot.services.status_machine import allowed_targets, check_transition


class TestCheckTransition:

    @pytest.mark.parametrize('current,target,role', [
        ('pending', 'approved', 'doctor'),
        ('pending', 'rejected', 'doctor'),
        ('approved', 'completed', 'doctor'),
        ('pending', 'cancelled', 'patient'),
        ('approved', 'cancelled', 'patient'),
        ('approved', 'cancelled', 'doctor'),
    ])
    def test_allowed(self, current, target, role):
        check_transition(current, target, role)

    @pytest.mark.parametrize('current,target,role', [
        ('pending', 'approved', 'patient'),
        ('pending', 'rejected', 'admin'),
        ('approved', 'completed', 'patient'),
        ('pending', 'cancelled', 'admin'),
    ])
    def test_wrong_role(self, current, target, role):
        with pytest.raises(TransitionForbidden):
            check_transition(current, target, role)

    @pytest.mark.parametrize('current', ['rejected', 'completed', 'cancelled'])
    def test_terminal_statuses_never_move(self, current):
        with pytest.raises(TransitionNotAllowed) as exc:
            check_transition(current, 'pending', 'doctor')
        assert exc.value.message == f'Appointment is already {current}'

    def test_skipping_approval(self):
        with pytest.raises(TransitionNotAllowed):
            check_transition('pending', 'completed', 'doctor')

    def test_same_status_write(self):
        with pytest.raises(TransitionNotAllowed):
            check_transition('approved', 'approved', 'doctor')

    def test_allowed_targets(self):
        assert allowed_targets('pending') == ['approved', 'cancelled', 'rejected']
        assert allowed_targets('completed') == []
