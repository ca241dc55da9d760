"""Supervisor for browser-driven bulk migrations.

The executor converts posts out of process: the operator opens a resume URL
in a browser and the web application advances shared state in SQLite one post
at a time. The CLI only starts the run, watches that shared state and renders
progress until the executor reports itself inactive.
"""
