"""Database adapters, imported on demand by ``sqlbq.connect``."""
