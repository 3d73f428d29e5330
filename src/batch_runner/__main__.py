"""Allow `python -m batch_runner`."""

from .cli.main import main

main()
