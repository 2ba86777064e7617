"""HTTP API for the funnel builder."""
