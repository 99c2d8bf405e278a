"""Infrastructure shared by the validator: structured logging and feed retrieval."""
