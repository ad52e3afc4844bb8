"""Entry point: opens the contribution-wall painter."""

import logging

from contribution_window import ContributionWindow
from log_setup import setup_logging
from settings import load_settings

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging(load_settings()["log_dir"])

    # The finalized list goes to whatever synthesis backend is wired in;
    # standalone, it is only reported.
    def on_finalize(contributions) -> None:
        total = sum(c.count for c in contributions)
        logger.info("Finalized %d days, %d contributions", len(contributions), total)

    win = ContributionWindow(on_finalize=on_finalize)
    win.root.mainloop()


if __name__ == "__main__":
    main()
