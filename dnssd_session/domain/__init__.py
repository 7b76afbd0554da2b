"""Domain layer: value objects, events, exceptions, contracts and controllers."""
