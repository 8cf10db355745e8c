"""Core configuration, errors, and security primitives."""
