"""Proposal Desk - proposal builder, proposal editor and contract signing service."""

__version__ = "1.0.0"
