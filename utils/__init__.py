"""Security helpers and Flask route decorators."""
