"""Domain rules that do not depend on a storage backend (collections, seeds, errors)."""
