"""Admin HTTP API for inspecting roles and testing commands."""
