"""Account and session service: registration, login sessions, one-time tokens, RBAC."""

__version__ = "0.1.0"
