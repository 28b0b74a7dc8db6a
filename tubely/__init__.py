"""
Tubely - video and thumbnail upload service.

This package contains the complete application:
- core: Framework-agnostic upload pipeline and media rules
- infrastructure: Storage backends, frame probe, identity, record store
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
