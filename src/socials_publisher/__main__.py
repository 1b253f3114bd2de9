"""Allow running as python -m socials_publisher."""

from .cli import main

main()
