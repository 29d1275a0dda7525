"""Exception hierarchy for the simulation engine."""


class KpiSimError(Exception):
    """Base exception for kpisim errors"""
    pass


class ConfigurationError(KpiSimError, ValueError):
    """Raised when a configuration or input shape makes the run meaningless"""
    pass


class SimulationCancelled(KpiSimError):
    """Raised when a run is cancelled before every batch completed"""
    pass
