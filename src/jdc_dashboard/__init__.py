"""JDC dashboard data layer: sector reads, evolution metrics and cached geocoding."""

__version__ = "0.1.0"
