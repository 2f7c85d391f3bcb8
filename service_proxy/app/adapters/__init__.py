"""
Adapters for external collaborators.

- upstream_client: HTTP client for the content provider, plus the
  Success/Failure result types the orchestrator consumes.
"""
