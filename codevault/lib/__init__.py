"""Core library: crypto, auth, storage and the service boundary."""
