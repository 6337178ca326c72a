from __future__ import annotations

from helixforge.cli import main

raise SystemExit(main())
