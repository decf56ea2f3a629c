"""Local configuration and persistence for the dashboard."""
