"""Application state shared by the dashboard surfaces."""
