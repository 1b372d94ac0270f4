"""Enumerated values shared by the models, request schemas and migrations."""

from typing import Dict, FrozenSet, List

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_RESOLVED = "resolved"
STATUS_REJECTED = "rejected"

STATUS_KEYS: List[str] = [STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_RESOLVED, STATUS_REJECTED]

# Used only when STATUS_TRANSITION_POLICY=strict.
STRICT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    STATUS_PENDING: frozenset({STATUS_IN_PROGRESS, STATUS_REJECTED}),
    STATUS_IN_PROGRESS: frozenset({STATUS_RESOLVED, STATUS_REJECTED}),
    STATUS_RESOLVED: frozenset(),
    STATUS_REJECTED: frozenset(),
}

ROLE_CITIZEN = "citizen"
ROLE_AUTHORITY = "authority"

SEARCH_MODES: List[str] = ["name", "pincode"]
