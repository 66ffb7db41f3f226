"""Infrastructure layer: database, broadcasting, storage and security adapters."""
