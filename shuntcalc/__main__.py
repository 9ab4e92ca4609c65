from shuntcalc.cli import main

raise SystemExit(main())
