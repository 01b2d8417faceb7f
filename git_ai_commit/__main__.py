import sys

from git_ai_commit.cli.main import main

sys.exit(main())
