"""Helper contracts deployed by the test-suite."""
