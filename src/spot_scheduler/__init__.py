"""Spot Scheduler: price-driven device switching."""

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("spot-scheduler")
except Exception:
    __version__ = "dev"
