import sys

from wordrank.client import main

sys.exit(main())
