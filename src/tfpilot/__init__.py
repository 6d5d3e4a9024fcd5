"""Interactive driver for terraform-managed AWS deployments."""

__version__ = "0.1.0"
