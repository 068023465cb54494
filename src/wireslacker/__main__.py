"""Module entrypoint.

Allows:
    python -m wireslacker --targets http://... --webhook https://hooks.slack.com/...
"""

from __future__ import annotations

from wireslacker.cli import main

if __name__ == "__main__":
    main()
