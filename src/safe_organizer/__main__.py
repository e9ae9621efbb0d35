"""Allow ``python -m safe_organizer``."""

from .cli import main

main()
