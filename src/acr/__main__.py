from acr.cli import main

raise SystemExit(main())
