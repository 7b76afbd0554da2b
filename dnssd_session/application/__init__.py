"""Application layer: reactions to domain events."""
