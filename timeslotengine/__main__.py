"""
Convenience entry point for running timeslotengine directly.

Usage: python -m timeslotengine [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
