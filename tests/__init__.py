"""foldsigs test suite."""
