"""prepcoach: nutrition auto-adjustment and competition prep for coached clients."""

__version__ = "0.1.0"
