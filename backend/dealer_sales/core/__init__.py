"""
Core application utilities.

Configuration, structured logging, security helpers, the error taxonomy and
the clock provider shared by every service.
"""
