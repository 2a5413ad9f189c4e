"""Infrastructure layer: ports and concrete adapters."""
