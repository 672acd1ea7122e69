"""Process wiring: logging and the application context."""
