"""Kernel services.  All of them flush within the caller's transaction."""
