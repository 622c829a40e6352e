"""
Rapid CLI - project documents from the command line.

Usage:
    rapid project data.yaml --schemas schemas.yaml
    rapid project data.json --schemas schemas.yaml --only id,name --key testers
    rapid config --config rapid.yaml
"""

__cli_name__ = "rapid"


def main():
    """Wrapper to avoid eager import of __main__ which causes warnings with -m."""
    from .__main__ import main as _main
    return _main()
