"""Shared utilities: exceptions, events and logging."""
