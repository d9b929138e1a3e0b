"""Graph core services: building, layout, cascade delete, dependencies, session state."""
