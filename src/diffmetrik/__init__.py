"""diffmetrik – rate-of-change reporting for host counters across short-lived runs."""

__version__ = "0.3.0"
