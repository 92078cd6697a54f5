"""Core services: configuration, catalog, paths, execution and history."""
