"""Persistence module — local storage, debounced writes, snapshot store."""
