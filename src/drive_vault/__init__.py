"""drive-vault: backup filesystem abstraction over OneDrive-style cloud storage."""

__version__ = "0.1.0"
