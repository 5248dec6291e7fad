"""Page objects for the UI smoke suite."""
