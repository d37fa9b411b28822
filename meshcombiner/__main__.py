from meshcombiner.cli import main

raise SystemExit(main())
