"""LeadFlow: lead capture, pipeline tracking and commission accounting."""

__version__ = "1.0.0"
