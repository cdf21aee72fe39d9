"""Linux Auto-Customizer — declarative desktop feature installer."""

__version__ = "0.1.0"
