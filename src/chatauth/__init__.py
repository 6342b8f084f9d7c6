"""chatauth - authentication backend for the chat application.

Registration, email verification, password reset and JWT session
management on top of a relational store and Redis.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
