"""Custom domain health monitoring and removal."""
