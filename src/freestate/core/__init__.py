"""Core data handling: CSV ingestion, typed records, image URLs."""
