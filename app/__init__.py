"""Chat front-end and relay for a local Ollama inference server."""

__version__ = "0.1.0"
