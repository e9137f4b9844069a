"""textgen: generate text from a language model, complete or streamed."""

__version__ = "0.1.0"
