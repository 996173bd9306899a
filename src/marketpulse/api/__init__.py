"""HTTP API for dashboards."""
