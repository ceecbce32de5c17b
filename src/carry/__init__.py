"""Funding carry rebalancer: strategy scoring, selection and delta-neutral hedge upkeep."""

__version__ = "0.1.0"
