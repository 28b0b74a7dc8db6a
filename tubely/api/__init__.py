"""HTTP surface: FastAPI routes and dependency wiring."""
