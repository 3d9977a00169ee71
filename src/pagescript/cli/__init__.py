"""pagescript command-line interface."""
