"""
HTTP API routes for the route orchestrator.

This package contains FastAPI route definitions that expose the route
operations over HTTP.
"""
