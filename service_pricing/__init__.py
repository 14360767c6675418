"""Client service pricing — catalogs, quotes, margins and worker-safe responses."""

__version__ = "0.1.0"
