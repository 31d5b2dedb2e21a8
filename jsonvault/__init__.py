"""jsonvault - passphrase-protected credential store in a single JSON file."""

__version__ = "1.0.0"
__all__ = ["__version__"]


def check_dependencies():
    """Exit with a readable message when a runtime dependency is missing."""
    import importlib.util
    import sys

    required = {"cryptography": "cryptography", "platformdirs": "platformdirs", "psutil": "psutil"}
    missing = [dist for mod, dist in required.items() if importlib.util.find_spec(mod) is None]
    if missing:
        print("ERROR: Missing dependencies ->", ", ".join(missing), file=sys.stderr)
        print("Install with:  pip install " + " ".join(missing), file=sys.stderr)
        sys.exit(1)
