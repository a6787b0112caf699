"""CAN sensor frame translation and routing agent for an MQTT bus."""

__version__ = "0.1.0"
