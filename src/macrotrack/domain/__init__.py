"""Domain layer: value objects, ports and the error taxonomy."""
