"""Relational persistence for users and sessions."""
