from redox_chat.cli import main

raise SystemExit(main())
