"""Outbound services used by the identity workflows."""
