"""FastAPI HTTP surface for B-GO pre-booking payments."""
