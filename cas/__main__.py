"""Allow ``python -m cas``."""

from cas.cli import main

main()
