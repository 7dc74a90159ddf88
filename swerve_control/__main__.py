"""
Main entry point when running the swerve_control module with python -m.
"""

from .client import run

if __name__ == "__main__":
    run()
