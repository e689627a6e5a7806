"""
PDB Reaper - Kubernetes PodDisruptionBudget Remediation Job

A one-shot job that finds PodDisruptionBudgets blocking voluntary
disruption (node drains, rolling upgrades, evictions) and deletes the
offending ones.
"""

__version__ = "1.0.0"
__author__ = "PDB Reaper Team"
