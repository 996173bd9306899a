"""Upstream adapters, timed fetch, and the cycle orchestrator."""
