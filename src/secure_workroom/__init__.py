"""Secure end-to-end encrypted conversations for the freelancer marketplace."""
