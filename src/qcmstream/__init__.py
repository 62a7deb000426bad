"""qcmstream: ingest engine for line-oriented QCM instrument streams."""

__version__ = "0.1.0"
