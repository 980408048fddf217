"""api/ -- FastAPI transport layer for the launcher endpoints."""
