"""Fetching, merging and querying Agile unit rates."""
