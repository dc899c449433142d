"""Apollo: action gateway for the Apollo SRE agent."""

__version__ = "1.0.0"
