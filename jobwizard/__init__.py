"""Job Wizard: personal job-application assistant."""

__version__ = "0.4.0"
