"""
ParcelScope - per-parcel land reports from Korean public data
"""

__version__ = "1.0.0"
