"""Contact management on top of Org outline documents."""

__version__ = "0.1.0"
