"""4Eunoia: personal productivity records with AI-assisted insight reports."""

__version__ = "0.1.0"
