"""
Entry point for running cmmcdoc as a module.

Usage:
    python -m cmmcdoc [command] [options]

This allows cmmcdoc to be executed directly as a Python module,
which is useful for development and testing without installing
the package.
"""

from cmmcdoc.cli import main

if __name__ == "__main__":
    main()
