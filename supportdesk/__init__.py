"""Multi-tenant customer-support chat backend with tool-augmented AI replies."""

__version__ = "0.1.0"
