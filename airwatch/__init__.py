"""Sentinel-5P NO₂ based PM2.5 proxy monitoring for Tamil Nadu cities (Earth Engine + Streamlit)."""

__version__ = "0.1.0"
