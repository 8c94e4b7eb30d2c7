import sys

from gptstream.main import main

sys.exit(main())
