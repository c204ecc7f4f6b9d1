from __future__ import annotations

from vanity.cli import main

raise SystemExit(main())
