"""HTTP API for the alert engine."""
