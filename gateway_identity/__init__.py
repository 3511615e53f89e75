"""Identity layer for an API gateway: credentials, API keys, tokens and roles."""

__version__ = "0.1.0"
