"""Framework integrations (FastAPI, Dependency Injector)."""
