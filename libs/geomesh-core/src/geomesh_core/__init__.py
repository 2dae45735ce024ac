"""GeoMesh Core — geo-aware resolver selection and node lifecycle."""

__version__ = "0.1.0"
