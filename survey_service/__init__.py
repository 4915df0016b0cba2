"""Survey collection service: survey form, admin dashboard and sheet mirror."""

__version__ = "1.0.0"
