"""NephroWatch: CKD patient follow-up with automatic clinical alerts."""

__version__ = "0.1.0"
