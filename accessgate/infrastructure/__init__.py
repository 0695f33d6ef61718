"""Infrastructure layer - adapters implementing domain protocols.

- cache/: single-flight permission cache, shared Redis tier, metrics
- logging/: structlog console adapter
- persistence/: in-memory and SQLAlchemy repository adapters
"""
