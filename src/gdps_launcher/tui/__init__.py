"""Interactive terminal interfaces for GDPS Launcher."""
