"""Remote import execution.

This package submits job descriptions to the deployed import state
machine and follows each execution to a terminal status.
"""
