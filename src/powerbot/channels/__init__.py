"""Chat channel transports."""
