"""Raft building blocks: wire messages, errors, configuration, unstable log, inflights and peer progress."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "configuration",
    "eraftpb",
    "errors",
    "inflights",
    "log_unstable",
    "progress",
    "progress_set",
]