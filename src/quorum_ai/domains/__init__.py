"""Domain packages (aviation underwriting, investment portfolios) discovered via ``__domain__.py``."""
