"""HTTP layer for AnonymizeX."""
