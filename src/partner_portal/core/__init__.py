"""Core configuration and infrastructure wiring."""
