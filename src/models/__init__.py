"""
Models Module - Pydantic Data Models
====================================

Data models shared across the API, services and renderer.

Modules:
    chat_models: Roles, role normalization and provider-bound messages
    error_models: Error codes and the standard error response envelope
    schemas: Request/response schemas for the HTTP API, grouped by domain
"""
