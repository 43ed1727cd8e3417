"""System tray front-end."""
