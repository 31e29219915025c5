"""Launchdeck - drive remote workspaces from a cold start to a reachable agent."""
