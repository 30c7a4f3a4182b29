"""parcelmatch: drone photo to land parcel matching engine."""

__version__ = "0.1.0"
