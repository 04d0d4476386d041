"""Infrastructure layer: persistence, realtime delivery and security."""
