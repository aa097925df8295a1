"""
CLI entry point, when used as a module: `python -m kdd`.
"""
from kdd import cli

if __name__ == '__main__':
    cli.main()
