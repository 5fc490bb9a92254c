from create_grandstack_app.cli import main

raise SystemExit(main())
