"""Authentication, sessions and product catalog with local persistence"""

__version__ = "1.0.0"
