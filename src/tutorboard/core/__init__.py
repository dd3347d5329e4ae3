"""Infrastructure layer: configuration, logging, events, persistence."""
