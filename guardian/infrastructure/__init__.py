"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- anthropic: Claude API client (the vision model)
- snowflake: Document store for analyses and accounts
- storage: Object storage for uploaded media (S3-compatible)
- video: FFmpeg frame sampling

These wrappers translate between external formats and our domain models.
"""
