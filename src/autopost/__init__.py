"""
autopost: recurring message tasks and keyword responders for chat rooms.

Subpackages:
- tasks: task store, delay parsing, repeating timers and the scheduler
- responders: responder store and the in-memory matching index
- core: ports, results, app state and inbound dispatch
- connectors: Matrix and console transports
- cli: commands, bootstrap and the entry point
"""

__version__ = "0.1.0"
