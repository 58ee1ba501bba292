"""Build-time source generation."""
