"""
Pytest suite for the Paint Queue backend.

Test categories:
- Unit tests: gate rules, ETA math, workflow engine with in-memory fakes
- Integration tests: repository, intake and audit against in-memory SQLite
- API tests: FastAPI routes through the ASGI transport
"""
