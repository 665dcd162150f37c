"""ByteBridge - keep a local folder in sync with a remote file store."""

__version__ = "0.1.0"
