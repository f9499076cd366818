"""Rivet core: configuration, routing engine and server."""
