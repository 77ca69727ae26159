"""Infrastructure layer: storage, HTTP integrations, observability."""
