"""Service layer: the attendance state machines and their supporting services."""
