"""Infrastructure layer — graph algorithms over specifications."""
