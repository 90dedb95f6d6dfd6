# backend/app/lifecycle.py
from enum import IntEnum


class BatchStatus(IntEnum):
    """Batch status as stored by the SupplyChain contract."""
    PENDING = 0
    APPROVED = 1
    REJECTED = 2
    CERTIFIED = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Role(IntEnum):
    PRODUCER = 0
    MANUFACTURER = 1
    DISTRIBUTOR = 2
    CERTIFIER = 3
    ADMIN = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


# action -> (allowed current statuses, resulting status)
TRANSITIONS = {
    "approve": ({BatchStatus.PENDING}, BatchStatus.APPROVED),
    "reject": ({BatchStatus.PENDING}, BatchStatus.REJECTED),
    "certify": ({BatchStatus.APPROVED}, BatchStatus.CERTIFIED),
}


def status_label(status: int) -> str:
    try:
        return BatchStatus(status).label
    except ValueError:
        return "Unknown"


def role_label(role: int) -> str:
    try:
        return Role(role).label
    except ValueError:
        return "Unknown"


def can_transition(current: int, action: str) -> bool:
    if action not in TRANSITIONS:
        return False
    allowed, _ = TRANSITIONS[action]
    return current in allowed


def check_transition(current: int, action: str) -> BatchStatus:
    """Return the status `action` leads to, or raise ValueError when not allowed."""
    if action not in TRANSITIONS:
        raise ValueError(f"Unknown batch action: {action}")
    if not can_transition(current, action):
        raise ValueError(f"Cannot {action} a batch that is {status_label(current)}")
    return TRANSITIONS[action][1]
