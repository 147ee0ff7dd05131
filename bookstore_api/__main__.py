"""Main entry point when executing bookstore_api as a package.

This allows running the package using python -m bookstore_api.
"""

from bookstore_api.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
