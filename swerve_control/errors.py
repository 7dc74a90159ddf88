"""Exceptions raised by the swerve control system."""


class ConfigurationError(ValueError):
    """Raised at startup for invalid geometry, gains or connection settings.

    Misconfiguration is fatal: there is no runtime recovery, the robot program
    must be fixed and restarted.
    """
