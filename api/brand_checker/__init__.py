"""Win Brand Checker API."""

__version__ = "1.0.0"
