"""NethServer 8 module release toolkit."""

__version__ = "0.1.0"
