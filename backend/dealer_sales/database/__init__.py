"""Database package: declarative base, models, connection and unit of work."""
