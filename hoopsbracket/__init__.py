"""Tournament ingestion and bracket construction for college basketball picks."""

__version__ = "0.1.0"
