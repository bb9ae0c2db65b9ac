"""Module entry point for python -m pump_manager."""

from __future__ import annotations

from pump_manager.app import main


if __name__ == "__main__":
    raise SystemExit(main())
