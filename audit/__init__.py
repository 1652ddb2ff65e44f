"""AI Readiness Audit core.

Session event handling, transcript insight extraction, report generation
and the session orchestrator that ties them together.
"""
