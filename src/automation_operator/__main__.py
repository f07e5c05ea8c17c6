from automation_operator.cli import main

raise SystemExit(main())
