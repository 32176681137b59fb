"""Package entry point for ``python -m sales_clone_bot``.

WHY: Operators start the webhook receiver with
``python -m sales_clone_bot --serve``; the launcher starts background jobs
with ``python -m sales_clone_bot`` (or ``python -m sales_clone_bot.job``).

HOW: Checks sys.argv for the ``--serve`` flag. If present, starts the
uvicorn server. Otherwise, runs one job from environment variables.

RULES:
- ``--serve`` runs the HTTP receiver
- Without ``--serve``, falls through to the job runner
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from sales_clone_bot.server.app import run_server
        run_server()
    else:
        from sales_clone_bot.job import main
        sys.exit(main())
