"""Concrete codecs, containers and storage for the note model."""
