"""Delivery lifecycle: state machine, repository and service."""
