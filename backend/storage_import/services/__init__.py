"""Concrete collaborators wired into the storage import pipeline."""
