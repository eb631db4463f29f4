"""Table reservation engine: policy checks, approvals and the REST API."""
