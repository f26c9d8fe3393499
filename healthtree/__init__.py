"""healthtree — hierarchical, on-demand health checks."""

__version__ = "0.1.0"
