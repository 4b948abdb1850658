"""Binder-style IPC building blocks: service registries, worker threads, containers, timers and logging."""

__version__ = "0.1.0"