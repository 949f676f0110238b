"""Core — models, engine, services, and use cases."""
