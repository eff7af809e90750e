"""HTTP and real-time API for the Secure Workroom service."""
