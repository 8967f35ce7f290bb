"""Command handlers that dispatch commands to aggregates or other handlers."""