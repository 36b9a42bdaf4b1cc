"""LinkWeaver: sequence navigation and link graph tooling for Markdown vaults."""

__version__ = "0.1.0"
