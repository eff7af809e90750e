"""Operational scripts for the Secure Workroom service."""
