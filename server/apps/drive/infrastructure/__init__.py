"""Infrastructure layer for drive app.

This package contains integrations with external systems:
- Custom storage backend for the object store (S3/MinIO)
- Textual relevance ranking on top of the ORM
- Caller identity verification
- Name validation and redaction of credential-like text

Keep infrastructure concerns separate from business logic.
"""
