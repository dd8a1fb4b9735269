"""configplus test suite."""
