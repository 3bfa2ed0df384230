"""Keeps Meilisearch search indexes in sync with the database."""
