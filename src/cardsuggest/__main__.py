import sys

from cardsuggest.cli import main

sys.exit(main())
