"""Core Layer — domain types, errors, pure helpers, and collaborator protocols."""
