from memlayout.cli.main import main

raise SystemExit(main())
