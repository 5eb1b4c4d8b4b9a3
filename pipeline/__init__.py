"""Fleet rescoring execution modules."""

from .runner import run_fleet_rescoring, FleetRunResult

__all__ = ['run_fleet_rescoring', 'FleetRunResult']
