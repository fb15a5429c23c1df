"""Result export for housekeeping."""
