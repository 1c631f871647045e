"""Connection state machine, values, errors and configuration."""
