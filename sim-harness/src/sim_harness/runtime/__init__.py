"""Runtime helpers for simulator-backed test runs."""
