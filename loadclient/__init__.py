"""Conference load-test client: receiver constraints policy and simulated room."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("conference-loadclient")
except PackageNotFoundError:  # pragma: no cover - fallback during local execution
    __version__ = "0.0.0"

__all__ = ["__version__"]
