"""Infrastructure layer: event bus, notification sinks and the zeroconf provider."""
