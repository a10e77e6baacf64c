"""Clients for the services the pipeline stages call out to."""
