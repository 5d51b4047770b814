"""Appointment status transitions and who may perform them."""
from medibot.errors import TransitionForbidden, TransitionNotAllowed

TERMINAL_STATUSES = frozenset({'rejected', 'completed', 'cancelled'})

# (current, target) -> roles allowed to make the move
ALLOWED_TRANSITIONS = {
    ('pending', 'approved'): frozenset({'doctor'}),
    ('pending', 'rejected'): frozenset({'doctor'}),
    ('approved', 'completed'): frozenset({'doctor'}),
    ('pending', 'cancelled'): frozenset({'doctor', 'patient'}),
    ('approved', 'cancelled'): frozenset({'doctor', 'patient'}),
}


def allowed_targets(current):
    return sorted(target for (source, target) in ALLOWED_TRANSITIONS if source == current)


def check_transition(current, target, actor_role):
    """
    Raises unless `actor_role` may move an appointment from `current` to `target`.

    Raises:
        TransitionNotAllowed: the edge does not exist (including every move out
            of a terminal status and same-status writes).
        TransitionForbidden: the edge exists but the actor's role may not take it.
    """
    roles = ALLOWED_TRANSITIONS.get((current, target))
    if roles is None:
        if current in TERMINAL_STATUSES:
            raise TransitionNotAllowed(f"Appointment is already {current}")
        targets = allowed_targets(current)
        raise TransitionNotAllowed(
            f"Cannot change status from {current} to {target}. Allowed: {', '.join(targets) or 'none'}"
        )
    if actor_role not in roles:
        raise TransitionForbidden(f"Only a {' or '.join(sorted(roles))} can change status from {current} to {target}")
