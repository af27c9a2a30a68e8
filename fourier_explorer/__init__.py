"""Interactive Fourier series explorer."""

__version__ = "0.1.0"
