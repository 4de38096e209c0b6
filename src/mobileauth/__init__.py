"""Mobile authenticator companion: login codes, device linking and confirmations."""

__version__ = "0.1.0"
