"""Allow ``python -m filltest``."""

from __future__ import annotations

from filltest.cli.main import main

if __name__ == "__main__":
    main()
