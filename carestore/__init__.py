"""carestore: storage backend for a clinical-records desktop app."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("carestore")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
