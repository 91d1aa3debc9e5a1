"""Page accumulation, artifact export and search."""
