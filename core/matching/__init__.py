"""
Batch matching: orchestration, match lifecycle and match insights.

- orchestrator.py: Per-candidate and fleet-wide batch scoring
- insights.py: Top matches, score statistics and skill recommendations
- status.py: Match lifecycle transitions
"""
