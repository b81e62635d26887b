"""Terraform state readers and writers, project scaffolding, a scaffolding command and a state receiver."""

__version__ = "0.1.0"

__all__ = ["__version__"]