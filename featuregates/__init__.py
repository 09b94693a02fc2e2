"""
featuregates - Feature Gate Status Reporter

Reports the effective enabled/disabled state and maturity of every
feature gate known to an Antrea component (agent, Windows agent or
controller), merging compiled-in defaults with the overrides found in
the instance's own deployed ConfigMap.
"""

__version__ = "0.1.0"
__author__ = "featuregates Team"
