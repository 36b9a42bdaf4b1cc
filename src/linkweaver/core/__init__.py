"""Core engines: sequences, links and batch rewriting."""
