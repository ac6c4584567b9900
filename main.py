"""Run the keyringdesk console from a source checkout, without installing it.

    python main.py --db keyring.json list
    python main.py --db https://example.org/keyring show gmail --copy

Arguments are passed straight to the ``keyringdesk`` command; see
``keyringdesk.frontend.cli.app`` for the subcommands.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from keyringdesk.frontend.cli.app import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
