"""Allow ``python -m cpnmon``."""

from cpnmon.cli import main

if __name__ == "__main__":
    main()
