"""famtrack - parental controls and screen-time authorization for family task tracking."""

__version__ = "0.3.0"
