"""
Allow ``python -m spritz_scheduling``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
