"""
Core business logic for misinformation analysis.

This module is framework-agnostic - it doesn't import FastAPI, Snowflake,
or any infrastructure concerns. Collaborators are described by protocols
and injected, so the flows can be tested in isolation.
"""
