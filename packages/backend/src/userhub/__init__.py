"""UserHub — user management service.

Account signup and login, JWT bearer authentication, admin/user
role gating, profile self-service, and admin-driven account
activation/deactivation.
"""

__version__ = "0.1.0"
