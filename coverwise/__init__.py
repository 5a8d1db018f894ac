"""CoverWise - AI-assisted insurance and medical bill analysis."""

__version__ = "0.1.0"
