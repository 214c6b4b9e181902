"""User interface for the sACN test generator."""
