import sys

from error_corpus.cli import main

sys.exit(main())
