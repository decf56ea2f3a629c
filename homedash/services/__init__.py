"""Clients and schemas for external services."""
