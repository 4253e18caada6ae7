"""
Top-level package for the longevity harness.

The scheduled scenario core lives under `longevity.scheduled_runner`; the suite
orchestrator that sequences scenarios is an external collaborator.
"""

__all__: list[str] = []
