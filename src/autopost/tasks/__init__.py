"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Embed, MessagePayload)
- task_store.py: SQLite-backed storage with gap-filling ids
- delay.py: "1h30m" style delay parsing
- timer.py: cancellable repeating asyncio timer
- task_scheduler.py: start/stop/delete/resume of live timers
- task_api.py: small high-level helpers used by the commands
"""
