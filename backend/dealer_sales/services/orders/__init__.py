"""Order lifecycle: enums, state machine, repository and service."""
