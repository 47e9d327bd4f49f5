"""DocFlow: counterparty registry and document registration service."""

__version__ = "0.1.0"
