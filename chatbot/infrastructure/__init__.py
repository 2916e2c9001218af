"""Infrastructure layer: configuration, logging, events, commands and strategies."""
