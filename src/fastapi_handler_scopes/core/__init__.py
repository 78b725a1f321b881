"""Framework-free core: request data, delay, strategies, dispatcher, responder."""
