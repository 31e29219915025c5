"""Workspace startup orchestration.

- **execution**: attempt sequencing, channel subscriptions, progress steps, agent reconnection
- **control**: remote Workspace Control client
- **bus**: message bus backends (in-process, Redis pub/sub)
- **agent**: agent endpoint probing and URL resolution
"""
