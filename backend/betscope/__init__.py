"""BetScope: AI research briefs for prediction-market questions."""

__version__ = "0.1.0"
__author__ = "BetScope Team"

# get_settings lives in betscope.config; import it from there to avoid cycles
__all__ = ["__version__", "__author__"]
