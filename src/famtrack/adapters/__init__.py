"""Storage adapters implementing the famtrack repository ports."""
