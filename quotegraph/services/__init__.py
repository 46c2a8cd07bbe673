"""Refresh orchestration, HTML rendering and tracked-issue persistence."""
