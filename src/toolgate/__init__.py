"""toolgate: policy-hook mediation for agent tool calls."""

__version__ = "0.1.0"
